from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import joinedload
from scholarchain.core.errors import NotFoundError
from scholarchain.models import Publication, PublicationAuthor
from scholarchain.services.base import BaseService
from scholarchain.services.publication_service import author_rows

logger = logging.getLogger(__name__)


class PublicationAuthorService(BaseService):
    async def add(self, publication_id: uuid.UUID, author_id: str, author_order: int = 0) -> PublicationAuthor:
        row = PublicationAuthor(publication_id=publication_id, author_id=author_id, author_order=author_order)
        async with self._atomic():
            self.db.add(row)
        return row

    async def remove(self, publication_id: uuid.UUID, author_id: str) -> None:
        async with self._atomic():
            result = await self.db.execute(
                delete(PublicationAuthor).where(
                    PublicationAuthor.publication_id == publication_id,
                    PublicationAuthor.author_id == author_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("PublicationAuthor", (publication_id, author_id))

    async def set_authors(self, publication_id: uuid.UUID, authors: Iterable) -> list[PublicationAuthor]:
        """Replace the whole author list; nothing changes if any entry is rejected."""
        async with self._atomic():
            if await self.db.get(Publication, publication_id) is None:
                raise NotFoundError("Publication", publication_id)
            await self.db.execute(
                delete(PublicationAuthor).where(PublicationAuthor.publication_id == publication_id)
            )
            self.db.add_all(author_rows(publication_id, authors))
        logger.info("Replaced author list of publication %s", publication_id)
        return await self.list_for_publication(publication_id)

    async def update_order(self, publication_id: uuid.UUID, author_id: str, author_order: int) -> PublicationAuthor:
        async with self._atomic():
            result = await self.db.execute(
                update(PublicationAuthor)
                .where(
                    PublicationAuthor.publication_id == publication_id,
                    PublicationAuthor.author_id == author_id,
                )
                .values(author_order=author_order)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount == 0:
                raise NotFoundError("PublicationAuthor", (publication_id, author_id))
        return await self.db.get(PublicationAuthor, (publication_id, author_id), populate_existing=True)

    async def list_for_publication(self, publication_id: uuid.UUID) -> list[PublicationAuthor]:
        result = await self.db.execute(
            select(PublicationAuthor)
            .options(joinedload(PublicationAuthor.author))
            .where(PublicationAuthor.publication_id == publication_id)
            .order_by(PublicationAuthor.author_order, PublicationAuthor.author_id)
        )
        return list(result.scalars().all())

    async def list_publications_for_author(self, author_id: str) -> list[Publication]:
        result = await self.db.execute(
            select(Publication)
            .join(PublicationAuthor, PublicationAuthor.publication_id == Publication.id)
            .where(PublicationAuthor.author_id == author_id)
            .order_by(Publication.created_at.desc(), Publication.id)
        )
        return list(result.scalars().all())

    async def has_author(self, publication_id: uuid.UUID, author_id: str) -> bool:
        return await self.db.get(PublicationAuthor, (publication_id, author_id)) is not None

    async def count_for_publication(self, publication_id: uuid.UUID) -> int:
        return await self.db.scalar(
            select(func.count()).select_from(PublicationAuthor)
            .where(PublicationAuthor.publication_id == publication_id)
        ) or 0

    async def count_for_author(self, author_id: str) -> int:
        return await self.db.scalar(
            select(func.count()).select_from(PublicationAuthor).where(PublicationAuthor.author_id == author_id)
        ) or 0
