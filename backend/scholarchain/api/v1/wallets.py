from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db, get_settings
from scholarchain.models import User
from scholarchain.schemas import (
    WalletCreate, WalletUpdate, WalletResponse, WalletLinkRequest, UserWalletResponse
)
from scholarchain.services import WalletService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user

router = APIRouter()
settings = get_settings()


async def _require_owner(db: AsyncSession, user_id: str, wallet_id: str) -> None:
    """Only the single user a wallet is linked to may change or delete it."""
    service = WalletService(db)
    await service.get(wallet_id)
    if await service.owners(wallet_id) != [user_id]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Wallet is not owned by you")


@router.post("", response_model=WalletResponse, status_code=status.HTTP_201_CREATED)
async def create_wallet(
    wallet_data: WalletCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Register a wallet and link it to the caller."""
    return await WalletService(db).create(
        wallet_data.wallet_id,
        wallet_data.wallet_address,
        owner_id=current_user.privy_id,
        is_primary=wallet_data.is_primary,
    )


@router.get("", response_model=list[WalletResponse])
async def list_wallets(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await WalletService(db).list(page=page, limit=limit)


@router.get("/primaries", response_model=dict[str, WalletResponse])
async def get_primary_wallets(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[list[str], Query()]
):
    """Primary wallet of each requested user; users without one are left out."""
    return await WalletService(db).get_primaries(user_id)


@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet(
    wallet_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await WalletService(db).get(wallet_id)


@router.put("/{wallet_id}", response_model=WalletResponse)
async def update_wallet(
    wallet_id: str,
    wallet_data: WalletUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await _require_owner(db, current_user.privy_id, wallet_id)
    return await WalletService(db).update(wallet_id, wallet_data.wallet_address)


@router.delete("/{wallet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_wallet(
    wallet_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await _require_owner(db, current_user.privy_id, wallet_id)
    await WalletService(db).delete(wallet_id)


@router.post("/{wallet_id}/link", response_model=UserWalletResponse, status_code=status.HTTP_201_CREATED)
async def link_wallet(
    wallet_id: str,
    link_data: WalletLinkRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await WalletService(db).link(current_user.privy_id, wallet_id, is_primary=link_data.is_primary)


@router.delete("/{wallet_id}/link", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_wallet(
    wallet_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await WalletService(db).unlink(current_user.privy_id, wallet_id)


@router.put("/{wallet_id}/primary", response_model=UserWalletResponse)
async def set_primary_wallet(
    wallet_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await WalletService(db).set_primary(current_user.privy_id, wallet_id)
