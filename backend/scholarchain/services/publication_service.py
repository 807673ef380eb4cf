from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from sqlalchemy import any_, delete, exists, func, literal, select
from scholarchain.core.errors import InvalidStateError, NotFoundError
from scholarchain.models import Citation, Publication, PublicationAuthor, PublicationStatus, utc_now
from scholarchain.services.base import LIKE_ESCAPE, BaseService, contains_pattern, page_window

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "about", "tags", "s3key", "price", "citation_royalty_bps")
TERMINAL_STATUSES = (PublicationStatus.PUBLISHED.value, PublicationStatus.FAILED.value)


def author_rows(publication_id: uuid.UUID, authors: Iterable) -> list[PublicationAuthor]:
    """Accept ``(author_id, order)`` pairs, plain author ids or objects with those attributes."""
    rows = []
    for position, entry in enumerate(authors):
        if isinstance(entry, str):
            author_id, order = entry, position
        elif isinstance(entry, tuple):
            author_id, order = entry
        else:
            author_id, order = entry.author_id, entry.author_order
        rows.append(PublicationAuthor(publication_id=publication_id, author_id=author_id, author_order=order))
    return rows


class PublicationService(BaseService):
    async def create(
        self,
        owner_id: str,
        title: str,
        about: str,
        s3key: str,
        tags: list[str] | None = None,
        price: int = 0,
        citation_royalty_bps: int = 0,
        authors: Iterable = (),
    ) -> Publication:
        """Insert a publication and its author list in a single transaction.

        New publications always start in ``PENDING_ONCHAIN``; the submitter
        reports the outcome through :meth:`record_onchain_result`.
        """
        publication = Publication(
            id=uuid.uuid4(),
            user_id=owner_id,
            title=title,
            about=about,
            s3key=s3key,
            tags=list(tags or []),
            price=price,
            citation_royalty_bps=citation_royalty_bps,
            status=PublicationStatus.PENDING_ONCHAIN.value,
        )
        async with self._atomic():
            self.db.add(publication)
            await self.db.flush()
            self.db.add_all(author_rows(publication.id, authors))
        logger.info("Created publication %s for %s", publication.id, owner_id)
        return publication

    async def get(self, publication_id: uuid.UUID) -> Publication:
        publication = await self.db.get(Publication, publication_id)
        if not publication:
            raise NotFoundError("Publication", publication_id)
        return publication

    def _filtered(self, stmt, status: str | None, user_id: str | None):
        if status:
            stmt = stmt.where(Publication.status == status)
        if user_id:
            stmt = stmt.where(Publication.user_id == user_id)
        return stmt

    async def list(
        self,
        status: str | None = None,
        user_id: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> list[Publication]:
        offset, limit = page_window(page, limit)
        stmt = self._filtered(select(Publication), status, user_id)
        result = await self.db.execute(
            stmt.order_by(Publication.created_at.desc(), Publication.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def count(self, status: str | None = None, user_id: str | None = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(Publication), status, user_id)
        return await self.db.scalar(stmt) or 0

    async def search_by_title(self, query: str, page: int = 1, limit: int | None = None) -> list[Publication]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(Publication)
            .where(Publication.title.ilike(contains_pattern(query), escape=LIKE_ESCAPE))
            .order_by(Publication.title, Publication.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def search_by_tag(self, tag: str, page: int = 1, limit: int | None = None) -> list[Publication]:
        offset, limit = page_window(page, limit)
        if self.dialect == "postgresql":
            condition = literal(tag) == any_(Publication.tags)
        else:
            elements = func.json_each(Publication.tags).table_valued("value")
            condition = exists(select(literal(1)).select_from(elements).where(elements.c.value == tag))
        result = await self.db.execute(
            select(Publication)
            .where(condition)
            .order_by(Publication.created_at.desc(), Publication.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update(self, publication_id: uuid.UUID, /, **fields) -> Publication:
        async with self._atomic():
            publication = await self.get(publication_id)
            for field in UPDATABLE_FIELDS:
                if field in fields and fields[field] is not None:
                    value = fields[field]
                    setattr(publication, field, list(value) if field == "tags" else value)
            publication.updated_at = utc_now()
        return publication

    async def delete(self, publication_id: uuid.UUID) -> None:
        """Delete a publication together with its author rows and citations in both directions."""
        async with self._atomic():
            result = await self.db.execute(delete(Publication).where(Publication.id == publication_id))
            if result.rowcount == 0:
                raise NotFoundError("Publication", publication_id)
        logger.info("Deleted publication %s", publication_id)

    async def record_onchain_result(
        self,
        publication_id: uuid.UUID,
        status: str,
        transaction_hash: str | None = None,
    ) -> Publication:
        """Apply the blockchain submitter's verdict to a pending publication."""
        try:
            status = PublicationStatus(status).value
        except ValueError:
            raise InvalidStateError(f"Unknown publication status {status!r}") from None
        if status not in TERMINAL_STATUSES:
            raise InvalidStateError(f"Cannot move a publication back to {status}")

        async with self._atomic():
            result = await self.db.execute(
                select(Publication).where(Publication.id == publication_id).with_for_update()
            )
            publication = result.scalar_one_or_none()
            if not publication:
                raise NotFoundError("Publication", publication_id)
            if publication.status != PublicationStatus.PENDING_ONCHAIN.value:
                raise InvalidStateError(f"Publication {publication_id} is already {publication.status}")
            if status == PublicationStatus.PUBLISHED.value and not transaction_hash:
                raise InvalidStateError("A published publication needs a transaction hash")

            publication.status = status
            if transaction_hash:
                publication.transaction_hash = transaction_hash
            publication.updated_at = utc_now()
        logger.info("Publication %s is now %s (tx=%s)", publication_id, status, transaction_hash)
        return publication

    async def list_citations(self, publication_id: uuid.UUID) -> list[Citation]:
        """Citations this publication makes."""
        result = await self.db.execute(
            select(Citation)
            .where(Citation.citing_publication_id == publication_id)
            .order_by(Citation.created_at.desc(), Citation.id)
        )
        return list(result.scalars().all())

    async def list_cited_by(self, publication_id: uuid.UUID) -> list[Publication]:
        """Publications that cite this one."""
        result = await self.db.execute(
            select(Publication)
            .join(Citation, Citation.citing_publication_id == Publication.id)
            .where(Citation.cited_publication_id == publication_id)
            .order_by(Publication.created_at.desc(), Publication.id)
        )
        return list(result.scalars().all())

    async def citation_count(self, publication_id: uuid.UUID) -> int:
        return await self.db.scalar(
            select(func.count()).select_from(Citation).where(Citation.cited_publication_id == publication_id)
        ) or 0
