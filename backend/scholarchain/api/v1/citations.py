import uuid
from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from scholarchain.core import get_db, get_settings
from scholarchain.models import User
from scholarchain.schemas import CitationCreate, CitationUpdate, CitationResponse, CountResponse
from scholarchain.services import CitationService
from scholarchain.api.v1.auth import get_current_privy_id, get_current_user
from scholarchain.api.v1.publications import get_owned_publication

router = APIRouter()
settings = get_settings()


@router.post("", response_model=CitationResponse, status_code=status.HTTP_201_CREATED)
async def create_citation(
    citation_data: CitationCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Record that one of the caller's publications cites another publication."""
    await get_owned_publication(db, citation_data.citing_publication_id, current_user.privy_id)
    return await CitationService(db).create(**citation_data.model_dump())


@router.get("", response_model=list[CitationResponse])
async def list_citations(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size)
):
    return await CitationService(db).list(page=page, limit=limit)


@router.get("/count", response_model=CountResponse)
async def count_citations(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return {"count": await CitationService(db).count()}


@router.get("/by-publications", response_model=CitationResponse)
async def get_citation_by_pair(
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    citing_publication_id: uuid.UUID,
    cited_publication_id: uuid.UUID
):
    return await CitationService(db).get_by_pair(citing_publication_id, cited_publication_id)


@router.delete("/by-publications", status_code=status.HTTP_204_NO_CONTENT)
async def delete_citation_by_pair(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    citing_publication_id: uuid.UUID,
    cited_publication_id: uuid.UUID
):
    await get_owned_publication(db, citing_publication_id, current_user.privy_id)
    await CitationService(db).delete_by_pair(citing_publication_id, cited_publication_id)


@router.get("/from/{publication_id}", response_model=list[CitationResponse])
async def list_citations_from(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Citations the publication makes."""
    return await CitationService(db).list_from(publication_id)


@router.get("/to/{publication_id}", response_model=list[CitationResponse])
async def list_citations_to(
    publication_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Citations the publication receives."""
    return await CitationService(db).list_to(publication_id)


@router.get("/{citation_id}", response_model=CitationResponse)
async def get_citation(
    citation_id: uuid.UUID,
    _: Annotated[str, Depends(get_current_privy_id)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    return await CitationService(db).get(citation_id)


@router.put("/{citation_id}", response_model=CitationResponse)
async def update_citation(
    citation_id: uuid.UUID,
    citation_data: CitationUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    citation = await CitationService(db).get(citation_id)
    await get_owned_publication(db, citation.citing_publication_id, current_user.privy_id)
    return await CitationService(db).update(citation_id, citation_data.citation_context)


@router.delete("/{citation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_citation(
    citation_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    citation = await CitationService(db).get(citation_id)
    await get_owned_publication(db, citation.citing_publication_id, current_user.privy_id)
    await CitationService(db).delete(citation_id)
