from __future__ import annotations

import logging
from sqlalchemy import delete, func, select
from scholarchain.core.errors import InvalidStateError, NotFoundError
from scholarchain.models import Author, UserWallet, Wallet, utc_now
from scholarchain.services.base import LIKE_ESCAPE, BaseService, contains_pattern, page_window

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "affiliation", "wallet_id")


class AuthorService(BaseService):
    async def create(
        self,
        privy_id: str,
        name: str,
        wallet_id: str,
        email: str | None = None,
        affiliation: str | None = None,
    ) -> Author:
        author = Author(
            privy_id=privy_id,
            name=name,
            email=email,
            affiliation=affiliation,
            wallet_id=wallet_id,
        )
        async with self._atomic():
            await self._require_linked_wallet(privy_id, wallet_id)
            self.db.add(author)
        logger.info("Created author profile for %s", privy_id)
        return await self.get(privy_id)

    async def get(self, privy_id: str) -> Author:
        author = await self.db.get(Author, privy_id, populate_existing=True)
        if not author:
            raise NotFoundError("Author", privy_id)
        return author

    async def get_by_email(self, email: str) -> Author:
        result = await self.db.execute(select(Author).where(Author.email == email))
        author = result.scalar_one_or_none()
        if not author:
            raise NotFoundError("Author", email)
        return author

    async def list(self, page: int = 1, limit: int | None = None) -> list[Author]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(Author)
            .order_by(Author.created_at.desc(), Author.privy_id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def search_by_name(self, query: str, page: int = 1, limit: int | None = None) -> list[Author]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(Author)
            .where(Author.name.ilike(contains_pattern(query), escape=LIKE_ESCAPE))
            .order_by(Author.name, Author.privy_id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        return await self.db.scalar(select(func.count()).select_from(Author)) or 0

    async def update(self, privy_id: str, /, **fields) -> Author:
        async with self._atomic():
            author = await self.get(privy_id)
            wallet_id = fields.get("wallet_id")
            if wallet_id and wallet_id != author.wallet_id:
                await self._require_linked_wallet(privy_id, wallet_id)

            for field in UPDATABLE_FIELDS:
                if field in fields and fields[field] is not None:
                    setattr(author, field, fields[field])
            author.updated_at = utc_now()
        return await self.get(privy_id)

    async def delete(self, privy_id: str) -> None:
        async with self._atomic():
            result = await self.db.execute(delete(Author).where(Author.privy_id == privy_id))
            if result.rowcount == 0:
                raise NotFoundError("Author", privy_id)
        logger.info("Deleted author profile for %s", privy_id)

    async def _require_linked_wallet(self, privy_id: str, wallet_id: str) -> None:
        # Unknown wallets are left to the foreign key; known ones must belong to the author
        if await self.db.get(Wallet, wallet_id) is None:
            return
        if await self.db.get(UserWallet, (privy_id, wallet_id)) is None:
            raise InvalidStateError(f"Wallet {wallet_id} is not linked to user {privy_id}")
