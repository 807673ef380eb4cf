import uuid
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db, get_settings
from scholarchain.models import Publication, User
from scholarchain.schemas import (
    PublicationCreate, PublicationUpdate, PublicationResponse, CountResponse,
    OnchainStatusUpdate, PublicationAuthorDetail, CitationResponse
)
from scholarchain.schemas.schemas import PublicationStatusLiteral
from scholarchain.services import PublicationService, PublicationAuthorService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user

router = APIRouter()
settings = get_settings()


async def get_owned_publication(db: AsyncSession, publication_id: uuid.UUID, privy_id: str) -> Publication:
    publication = await PublicationService(db).get(publication_id)
    if publication.user_id != privy_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the owner of this publication")
    return publication


def author_details(rows) -> list[PublicationAuthorDetail]:
    return [
        PublicationAuthorDetail(
            publication_id=row.publication_id,
            author_id=row.author_id,
            author_order=row.author_order,
            name=row.author.name,
            email=row.author.email,
            affiliation=row.author.affiliation,
            wallet_address=row.author.wallet_address,
        )
        for row in rows
    ]


@router.post("", response_model=PublicationResponse, status_code=status.HTTP_201_CREATED)
async def create_publication(
    publication_data: PublicationCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    data = publication_data.model_dump(exclude={"authors"})
    return await PublicationService(db).create(
        owner_id=current_user.privy_id,
        authors=publication_data.authors,
        **data,
    )


@router.get("", response_model=list[PublicationResponse])
async def list_publications(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: PublicationStatusLiteral | None = Query(default=None, alias="status"),
    user_id: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await PublicationService(db).list(status=status_filter, user_id=user_id, page=page, limit=limit)


@router.get("/count", response_model=CountResponse)
async def count_publications(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: PublicationStatusLiteral | None = Query(default=None, alias="status"),
    user_id: str | None = None
):
    return {"count": await PublicationService(db).count(status=status_filter, user_id=user_id)}


@router.get("/search/title", response_model=list[PublicationResponse])
async def search_by_title(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    q: str = Query(min_length=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await PublicationService(db).search_by_title(q, page=page, limit=limit)


@router.get("/search/tag", response_model=list[PublicationResponse])
async def search_by_tag(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    tag: str = Query(min_length=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await PublicationService(db).search_by_tag(tag, page=page, limit=limit)


@router.get("/{publication_id}", response_model=PublicationResponse)
async def get_publication(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await PublicationService(db).get(publication_id)


@router.put("/{publication_id}", response_model=PublicationResponse)
async def update_publication(
    publication_id: uuid.UUID,
    publication_data: PublicationUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await get_owned_publication(db, publication_id, current_user.privy_id)
    return await PublicationService(db).update(
        publication_id, **publication_data.model_dump(exclude_unset=True)
    )


@router.delete("/{publication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_publication(
    publication_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await get_owned_publication(db, publication_id, current_user.privy_id)
    await PublicationService(db).delete(publication_id)


@router.post("/{publication_id}/onchain-status", response_model=PublicationResponse)
async def record_onchain_status(
    publication_id: uuid.UUID,
    status_data: OnchainStatusUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Report the outcome of the on-chain submission for a pending publication."""
    await get_owned_publication(db, publication_id, current_user.privy_id)
    return await PublicationService(db).record_onchain_result(
        publication_id, status_data.status, status_data.transaction_hash
    )


@router.get("/{publication_id}/authors", response_model=list[PublicationAuthorDetail])
async def list_publication_authors(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await PublicationService(db).get(publication_id)
    return author_details(await PublicationAuthorService(db).list_for_publication(publication_id))


@router.get("/{publication_id}/citations", response_model=list[CitationResponse])
async def list_publication_citations(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await PublicationService(db).get(publication_id)
    return await PublicationService(db).list_citations(publication_id)


@router.get("/{publication_id}/cited-by", response_model=list[PublicationResponse])
async def list_citing_publications(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await PublicationService(db).get(publication_id)
    return await PublicationService(db).list_cited_by(publication_id)


@router.get("/{publication_id}/citation-count", response_model=CountResponse)
async def count_citations_received(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await PublicationService(db).get(publication_id)
    return {"count": await PublicationService(db).citation_count(publication_id)}
