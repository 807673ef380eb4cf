from __future__ import annotations

import logging
import uuid
from sqlalchemy import delete, func, select
from scholarchain.core.errors import NotFoundError
from scholarchain.models import Citation
from scholarchain.services.base import BaseService, page_window

logger = logging.getLogger(__name__)


class CitationService(BaseService):
    async def create(
        self,
        citing_publication_id: uuid.UUID,
        cited_publication_id: uuid.UUID,
        citation_context: str | None = None,
    ) -> Citation:
        citation = Citation(
            id=uuid.uuid4(),
            citing_publication_id=citing_publication_id,
            cited_publication_id=cited_publication_id,
            citation_context=citation_context,
        )
        async with self._atomic():
            self.db.add(citation)
        logger.info("%s cites %s", citing_publication_id, cited_publication_id)
        return citation

    async def get(self, citation_id: uuid.UUID) -> Citation:
        citation = await self.db.get(Citation, citation_id)
        if not citation:
            raise NotFoundError("Citation", citation_id)
        return citation

    async def get_by_pair(self, citing_publication_id: uuid.UUID, cited_publication_id: uuid.UUID) -> Citation:
        result = await self.db.execute(
            select(Citation).where(
                Citation.citing_publication_id == citing_publication_id,
                Citation.cited_publication_id == cited_publication_id,
            )
        )
        citation = result.scalar_one_or_none()
        if not citation:
            raise NotFoundError("Citation", (citing_publication_id, cited_publication_id))
        return citation

    async def list(self, page: int = 1, limit: int | None = None) -> list[Citation]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(Citation).order_by(Citation.created_at.desc(), Citation.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def list_from(self, citing_publication_id: uuid.UUID) -> list[Citation]:
        result = await self.db.execute(
            select(Citation)
            .where(Citation.citing_publication_id == citing_publication_id)
            .order_by(Citation.created_at.desc(), Citation.id)
        )
        return list(result.scalars().all())

    async def list_to(self, cited_publication_id: uuid.UUID) -> list[Citation]:
        result = await self.db.execute(
            select(Citation)
            .where(Citation.cited_publication_id == cited_publication_id)
            .order_by(Citation.created_at.desc(), Citation.id)
        )
        return list(result.scalars().all())

    async def update(self, citation_id: uuid.UUID, citation_context: str | None) -> Citation:
        async with self._atomic():
            citation = await self.get(citation_id)
            citation.citation_context = citation_context
        return citation

    async def delete(self, citation_id: uuid.UUID) -> None:
        async with self._atomic():
            result = await self.db.execute(delete(Citation).where(Citation.id == citation_id))
            if result.rowcount == 0:
                raise NotFoundError("Citation", citation_id)

    async def delete_by_pair(self, citing_publication_id: uuid.UUID, cited_publication_id: uuid.UUID) -> None:
        async with self._atomic():
            result = await self.db.execute(
                delete(Citation).where(
                    Citation.citing_publication_id == citing_publication_id,
                    Citation.cited_publication_id == cited_publication_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Citation", (citing_publication_id, cited_publication_id))

    async def count(self) -> int:
        return await self.db.scalar(select(func.count()).select_from(Citation)) or 0
