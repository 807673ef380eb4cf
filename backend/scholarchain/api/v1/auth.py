import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import decode_token, extract_bearer_token, get_db
from scholarchain.models import User
from scholarchain.schemas import AuthorResponse, SignInResponse, UserResponse
from scholarchain.services import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_current_privy_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the caller's Privy subject from the bearer token."""
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token)
    privy_id = payload.get("sub") if payload else None
    if not privy_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return privy_id


async def get_current_user(
    privy_id: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    user = await db.get(User, privy_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not registered; sign in first")
    return user


@router.post("/privy/sign-in", response_model=SignInResponse)
async def sign_in(
    response: Response,
    privy_id: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Exchange a verified Privy token for the caller's user record, creating it on first use."""
    user, author, created = await UserService(db).sign_in(privy_id)
    if created:
        logger.info("First sign-in for %s", privy_id)
        response.status_code = status.HTTP_201_CREATED
    return SignInResponse(
        user=UserResponse.model_validate(user),
        author=AuthorResponse.model_validate(author) if author else None,
        is_new_user=created,
    )
