import uuid
from typing import Annotated
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db
from scholarchain.models import User
from scholarchain.schemas import (
    PublicationAuthorCreate, PublicationAuthorDelete, PublicationAuthorOrderUpdate,
    PublicationAuthorResponse, PublicationAuthorEntry, PublicationAuthorDetail,
    PublicationResponse, CountResponse, HasAuthorResponse
)
from scholarchain.services import PublicationAuthorService, PublicationService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user
from scholarchain.api.v1.publications import author_details, get_owned_publication

router = APIRouter()


@router.post("", response_model=PublicationAuthorResponse, status_code=status.HTTP_201_CREATED)
async def add_publication_author(
    link_data: PublicationAuthorCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await get_owned_publication(db, link_data.publication_id, current_user.privy_id)
    return await PublicationAuthorService(db).add(
        link_data.publication_id, link_data.author_id, link_data.author_order
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_publication_author(
    link_data: PublicationAuthorDelete,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await get_owned_publication(db, link_data.publication_id, current_user.privy_id)
    await PublicationAuthorService(db).remove(link_data.publication_id, link_data.author_id)


@router.put("/order", response_model=PublicationAuthorResponse)
async def update_author_order(
    order_data: PublicationAuthorOrderUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await get_owned_publication(db, order_data.publication_id, current_user.privy_id)
    return await PublicationAuthorService(db).update_order(
        order_data.publication_id, order_data.author_id, order_data.author_order
    )


@router.put("/{publication_id}", response_model=list[PublicationAuthorResponse])
async def replace_publication_authors(
    publication_id: uuid.UUID,
    authors: Annotated[list[PublicationAuthorEntry], Body()],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the full, ordered author list of a publication."""
    await get_owned_publication(db, publication_id, current_user.privy_id)
    return await PublicationAuthorService(db).set_authors(publication_id, authors)


@router.get("/publication/{publication_id}", response_model=list[PublicationAuthorDetail])
async def list_authors_of_publication(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await PublicationService(db).get(publication_id)
    return author_details(await PublicationAuthorService(db).list_for_publication(publication_id))


@router.get("/has-author", response_model=HasAuthorResponse)
async def publication_has_author(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    publication_id: uuid.UUID,
    author_id: str
):
    return {"has_author": await PublicationAuthorService(db).has_author(publication_id, author_id)}


@router.get("/count/author/{author_id}", response_model=CountResponse)
async def count_publications_of_author(
    author_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return {"count": await PublicationAuthorService(db).count_for_author(author_id)}


@router.get("/count/{publication_id}", response_model=CountResponse)
async def count_authors_of_publication(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return {"count": await PublicationAuthorService(db).count_for_publication(publication_id)}


@router.get("/author/{author_id}", response_model=list[PublicationResponse])
async def list_publications_of_author(
    author_id: str,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await PublicationAuthorService(db).list_publications_for_author(author_id)
