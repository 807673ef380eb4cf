from scholarchain.core.config import Settings, get_settings
from scholarchain.core.database import Base, get_db, async_session_maker, engine
from scholarchain.core.errors import (
    ScholarchainError,
    ConstraintViolation,
    NotFoundError,
    InvalidStateError,
    MigrationError,
    translate_integrity_error,
)
from scholarchain.core.security import decode_token, extract_bearer_token

__all__ = [
    "Settings",
    "get_settings",
    "Base",
    "get_db",
    "async_session_maker",
    "engine",
    "ScholarchainError",
    "ConstraintViolation",
    "NotFoundError",
    "InvalidStateError",
    "MigrationError",
    "translate_integrity_error",
    "decode_token",
    "extract_bearer_token",
]
