from __future__ import annotations

import logging
from sqlalchemy import delete, select, update
from sqlalchemy.orm import joinedload
from scholarchain.core.errors import InvalidStateError, NotFoundError
from scholarchain.models import Author, User, UserWallet, Wallet, utc_now
from scholarchain.services.base import BaseService, page_window

logger = logging.getLogger(__name__)


class WalletService(BaseService):
    async def create(
        self,
        wallet_id: str,
        wallet_address: str,
        owner_id: str | None = None,
        is_primary: bool = False,
    ) -> Wallet:
        """Register a wallet, optionally linking it to its owner in the same transaction."""
        wallet = Wallet(wallet_id=wallet_id, wallet_address=wallet_address)
        async with self._atomic():
            self.db.add(wallet)
            if owner_id:
                await self.db.flush()
                if is_primary:
                    await self._lock_user(owner_id)
                    await self._clear_primary(owner_id)
                self.db.add(UserWallet(user_id=owner_id, wallet_id=wallet_id, is_primary=is_primary))
        logger.info("Registered wallet %s", wallet_id)
        return wallet

    async def get(self, wallet_id: str) -> Wallet:
        wallet = await self.db.get(Wallet, wallet_id)
        if not wallet:
            raise NotFoundError("Wallet", wallet_id)
        return wallet

    async def list(self, page: int = 1, limit: int | None = None) -> list[Wallet]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(Wallet)
            .order_by(Wallet.created_at.desc(), Wallet.wallet_id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def owners(self, wallet_id: str) -> list[str]:
        """Ids of every user the wallet is linked to."""
        result = await self.db.execute(
            select(UserWallet.user_id).where(UserWallet.wallet_id == wallet_id).order_by(UserWallet.user_id)
        )
        return list(result.scalars().all())

    async def update(self, wallet_id: str, wallet_address: str) -> Wallet:
        async with self._atomic():
            wallet = await self.get(wallet_id)
            wallet.wallet_address = wallet_address
            wallet.updated_at = utc_now()
        return wallet

    async def delete(self, wallet_id: str) -> None:
        """Delete a wallet and its user links; refused while an author is paid through it."""
        async with self._atomic():
            result = await self.db.execute(delete(Wallet).where(Wallet.wallet_id == wallet_id))
            if result.rowcount == 0:
                raise NotFoundError("Wallet", wallet_id)
        logger.info("Deleted wallet %s", wallet_id)

    async def link(self, user_id: str, wallet_id: str, is_primary: bool = False) -> UserWallet:
        """Link a wallet to ``user_id``; a wallet owned by someone else cannot be claimed."""
        link = UserWallet(user_id=user_id, wallet_id=wallet_id, is_primary=is_primary)
        async with self._atomic():
            claimed = await self.db.scalar(
                select(UserWallet.user_id)
                .where(UserWallet.wallet_id == wallet_id, UserWallet.user_id != user_id)
                .limit(1)
            )
            if claimed is not None:
                raise InvalidStateError(f"Wallet {wallet_id} is already linked to another user")
            if is_primary:
                await self._lock_user(user_id)
                await self._clear_primary(user_id)
            self.db.add(link)
        logger.info("Linked wallet %s to user %s (primary=%s)", wallet_id, user_id, is_primary)
        return link

    async def unlink(self, user_id: str, wallet_id: str) -> None:
        """Remove a link; refused for the wallet the user's author profile is paid through."""
        async with self._atomic():
            payout = await self.db.scalar(
                select(Author.privy_id).where(Author.privy_id == user_id, Author.wallet_id == wallet_id)
            )
            if payout is not None:
                raise InvalidStateError(f"Wallet {wallet_id} pays the author profile of {user_id}")
            result = await self.db.execute(
                delete(UserWallet).where(UserWallet.user_id == user_id, UserWallet.wallet_id == wallet_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("UserWallet", (user_id, wallet_id))

    async def list_for_user(self, user_id: str) -> list[UserWallet]:
        result = await self.db.execute(
            select(UserWallet)
            .options(joinedload(UserWallet.wallet))
            .where(UserWallet.user_id == user_id)
            .order_by(UserWallet.is_primary.desc(), UserWallet.created_at)
        )
        return list(result.scalars().all())

    async def get_primary(self, user_id: str) -> Wallet:
        result = await self.db.execute(
            select(Wallet)
            .join(UserWallet, UserWallet.wallet_id == Wallet.wallet_id)
            .where(UserWallet.user_id == user_id, UserWallet.is_primary.is_(True))
        )
        wallet = result.scalar_one_or_none()
        if not wallet:
            raise NotFoundError("Primary wallet", user_id)
        return wallet

    async def get_primaries(self, user_ids: list[str]) -> dict[str, Wallet]:
        """Primary wallet per user id; users without one are absent from the result."""
        if not user_ids:
            return {}
        result = await self.db.execute(
            select(UserWallet.user_id, Wallet)
            .join(Wallet, Wallet.wallet_id == UserWallet.wallet_id)
            .where(UserWallet.user_id.in_(user_ids), UserWallet.is_primary.is_(True))
        )
        return {user_id: wallet for user_id, wallet in result.all()}

    async def set_primary(self, user_id: str, wallet_id: str) -> UserWallet:
        """Make ``wallet_id`` the user's only primary wallet.

        Callers for the same user are serialized on the user row, so the
        clear-then-set pair never interleaves. The unique filtered index on
        user_wallets is the final guard.
        """
        async with self._atomic():
            await self._lock_user(user_id)
            link = await self.db.get(UserWallet, (user_id, wallet_id))
            if not link:
                raise NotFoundError("UserWallet", (user_id, wallet_id))
            if not link.is_primary:
                await self._clear_primary(user_id)
                link.is_primary = True
        logger.info("Primary wallet of %s is now %s", user_id, wallet_id)
        return link

    async def _lock_user(self, user_id: str) -> None:
        # FOR UPDATE is dropped on SQLite, where BEGIN IMMEDIATE already serializes writers
        result = await self.db.execute(
            select(User.privy_id).where(User.privy_id == user_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("User", user_id)

    async def _clear_primary(self, user_id: str) -> None:
        await self.db.execute(
            update(UserWallet)
            .where(UserWallet.user_id == user_id, UserWallet.is_primary.is_(True))
            .values(is_primary=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
