import logging
from typing import Any
from jose import JWTError, jwt
from scholarchain.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def decode_token(token: str) -> dict[str, Any] | None:
    """Verify a Privy access token and return its claims, or None if invalid."""
    if not settings.privy_verification_key:
        logger.warning("Rejecting token: no Privy verification key configured")
        return None
    try:
        return jwt.decode(
            token,
            settings.privy_verification_key,
            algorithms=[settings.privy_algorithm],
            audience=settings.privy_app_id or None,
            issuer=settings.privy_issuer,
            options={"verify_aud": bool(settings.privy_app_id)},
        )
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        return None


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
