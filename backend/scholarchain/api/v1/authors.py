from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db, get_settings
from scholarchain.models import User
from scholarchain.schemas import AuthorCreate, AuthorUpdate, AuthorResponse, CountResponse, PublicationResponse
from scholarchain.services import AuthorService, PublicationAuthorService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user

router = APIRouter()
settings = get_settings()


@router.post("", response_model=AuthorResponse, status_code=status.HTTP_201_CREATED)
async def create_author(
    author_data: AuthorCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create the caller's author profile, paid through one of their wallets."""
    return await AuthorService(db).create(privy_id=current_user.privy_id, **author_data.model_dump())


@router.get("", response_model=list[AuthorResponse])
async def list_authors(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await AuthorService(db).list(page=page, limit=limit)


@router.get("/search", response_model=list[AuthorResponse])
async def search_authors(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    q: str = Query(min_length=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await AuthorService(db).search_by_name(q, page=page, limit=limit)


@router.get("/count", response_model=CountResponse)
async def count_authors(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return {"count": await AuthorService(db).count()}


@router.get("/by-email", response_model=AuthorResponse)
async def get_author_by_email(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    email: str = Query(min_length=1)
):
    return await AuthorService(db).get_by_email(email)


@router.put("/me", response_model=AuthorResponse)
async def update_my_author(
    author_data: AuthorUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await AuthorService(db).update(current_user.privy_id, **author_data.model_dump(exclude_unset=True))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_author(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await AuthorService(db).delete(current_user.privy_id)


@router.get("/{privy_id}", response_model=AuthorResponse)
async def get_author(
    privy_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await AuthorService(db).get(privy_id)


@router.get("/{privy_id}/publications", response_model=list[PublicationResponse])
async def list_author_publications(
    privy_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await AuthorService(db).get(privy_id)
    return await PublicationAuthorService(db).list_publications_for_author(privy_id)
