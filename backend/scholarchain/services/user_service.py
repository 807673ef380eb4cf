import hashlib
import logging
from sqlalchemy import delete, func, select
from scholarchain.core.errors import UNIQUE, ConstraintViolation, NotFoundError
from scholarchain.models import Author, User, utc_now
from scholarchain.services.base import BaseService, page_window

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("username", "email", "full_name", "avatar_s3key")
SIGN_IN_FULL_NAME = "Privy User"


def derived_identity(privy_id: str) -> tuple[str, str]:
    """Placeholder username and email for a first sign-in.

    Privy subjects look like ``did:privy:<id>``; only the opaque suffix is used.
    Its leading characters are mostly a timestamp, so the username carries a
    digest of the whole subject and the email the whole suffix.
    """
    suffix = privy_id.rsplit(":", 1)[-1].lower()
    digest = hashlib.sha256(privy_id.encode()).hexdigest()[:8]
    return f"user_{suffix[:10]}_{digest}", f"{suffix[:90]}@privy.user"


class UserService(BaseService):
    async def create(
        self,
        privy_id: str,
        username: str,
        email: str,
        full_name: str | None = None,
        avatar_s3key: str | None = None,
    ) -> User:
        user = User(
            privy_id=privy_id,
            username=username,
            email=email,
            full_name=full_name,
            avatar_s3key=avatar_s3key,
        )
        async with self._atomic():
            self.db.add(user)
        logger.info("Created user %s", privy_id)
        return user

    async def get(self, privy_id: str) -> User:
        user = await self.db.get(User, privy_id)
        if not user:
            raise NotFoundError("User", privy_id)
        return user

    async def get_by_username(self, username: str) -> User:
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User", username)
        return user

    async def list(self, page: int = 1, limit: int | None = None) -> list[User]:
        offset, limit = page_window(page, limit)
        result = await self.db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.privy_id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        return await self.db.scalar(select(func.count()).select_from(User)) or 0

    async def update(self, privy_id: str, /, **fields) -> User:
        async with self._atomic():
            user = await self.get(privy_id)
            for field in UPDATABLE_FIELDS:
                if field in fields and fields[field] is not None:
                    setattr(user, field, fields[field])
            user.updated_at = utc_now()
        return user

    async def delete(self, privy_id: str) -> None:
        """Delete a user; wallets links, author profile and publications go with it."""
        async with self._atomic():
            result = await self.db.execute(delete(User).where(User.privy_id == privy_id))
            if result.rowcount == 0:
                raise NotFoundError("User", privy_id)
        logger.info("Deleted user %s", privy_id)

    async def sign_in(self, privy_id: str) -> tuple[User, Author | None, bool]:
        """Return ``(user, author, created)``, creating the user on first sign-in.

        No author profile is created here: an author needs a payout wallet.
        """
        user = await self.db.get(User, privy_id)
        if user:
            author = await self.db.get(Author, privy_id)
            return user, author, False

        username, email = derived_identity(privy_id)
        try:
            user = await self.create(privy_id, username, email, full_name=SIGN_IN_FULL_NAME)
        except ConstraintViolation as exc:
            # A concurrent first sign-in for the same subject won the insert
            if exc.kind != UNIQUE or exc.constraint != "users_pkey":
                raise
            user = await self.get(privy_id)
            author = await self.db.get(Author, privy_id)
            return user, author, False
        return user, None, True
