from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db, get_settings
from scholarchain.models import User
from scholarchain.schemas import CountResponse, UserCreate, UserUpdate, UserResponse, UserWalletDetail, WalletResponse
from scholarchain.services import UserService, WalletService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user

router = APIRouter()
settings = get_settings()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    privy_id: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Register the caller explicitly instead of through sign-in."""
    return await UserService(db).create(privy_id=privy_id, **user_data.model_dump())


@router.get("", response_model=list[UserResponse])
async def list_users(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await UserService(db).list(page=page, limit=limit)


@router.put("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await UserService(db).update(current_user.privy_id, **user_data.model_dump(exclude_unset=True))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await UserService(db).delete(current_user.privy_id)


@router.get("/count", response_model=CountResponse)
async def count_users(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return {"count": await UserService(db).count()}


@router.get("/by-username/{username}", response_model=UserResponse)
async def get_user_by_username(
    username: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await UserService(db).get_by_username(username)


@router.get("/{privy_id}", response_model=UserResponse)
async def get_user(
    privy_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await UserService(db).get(privy_id)


@router.get("/{privy_id}/wallets", response_model=list[UserWalletDetail])
async def list_user_wallets(
    privy_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await UserService(db).get(privy_id)
    return await WalletService(db).list_for_user(privy_id)


@router.get("/{privy_id}/wallets/primary", response_model=WalletResponse)
async def get_primary_wallet(
    privy_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await WalletService(db).get_primary(privy_id)
