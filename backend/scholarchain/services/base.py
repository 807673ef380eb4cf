import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core.config import get_settings
from scholarchain.core.errors import ConstraintViolation, translate_integrity_error

settings = get_settings()
logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def page_window(page: int = 1, limit: int | None = None) -> tuple[int, int]:
    """Return (offset, limit) for a 1-based page, clamped to the configured bounds."""
    limit = settings.default_page_size if limit is None else limit
    limit = max(1, min(limit, settings.max_page_size))
    page = max(1, page)
    return (page - 1) * limit, limit


def contains_pattern(text: str) -> str:
    """ILIKE pattern matching ``text`` literally anywhere; pair with ``escape=LIKE_ESCAPE``."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class BaseService:
    """Shared session handling: one savepoint per write, constraint errors translated."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    @asynccontextmanager
    async def _atomic(self):
        """Run the block as one write.

        The block executes inside a SAVEPOINT. On success the savepoint is
        released and the session committed. On any exception only the
        savepoint is rolled back, so instances loaded earlier in the session
        stay usable.
        """
        try:
            async with self.db.begin_nested():
                yield
        except IntegrityError as exc:
            raise self._violation(exc) from exc
        except SQLAlchemyError:
            logger.exception("Database error during write")
            raise
        await self._commit()

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise self._violation(exc) from exc
        except SQLAlchemyError:
            logger.exception("Database error while committing")
            await self.db.rollback()
            raise

    @staticmethod
    def _violation(exc: IntegrityError) -> ConstraintViolation:
        violation = translate_integrity_error(exc)
        logger.info("Write rejected (%s): %s", violation.kind, violation.constraint or violation.message)
        return violation
