from fastapi import APIRouter
from scholarchain.api.v1 import auth, users, wallets, authors, publications, publication_authors, citations
from scholarchain.schemas import ErrorResponse

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Record not found"},
    409: {"model": ErrorResponse, "description": "Constraint violation or invalid state"},
}

router = APIRouter(responses=ERROR_RESPONSES)

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(wallets.router, prefix="/wallets", tags=["wallets"])
router.include_router(authors.router, prefix="/authors", tags=["authors"])
router.include_router(publications.router, prefix="/publications", tags=["publications"])
router.include_router(publication_authors.router, prefix="/publication-authors", tags=["publication-authors"])
router.include_router(citations.router, prefix="/citations", tags=["citations"])
