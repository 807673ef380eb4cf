from scholarchain.services.user_service import UserService
from scholarchain.services.wallet_service import WalletService
from scholarchain.services.author_service import AuthorService
from scholarchain.services.publication_service import PublicationService
from scholarchain.services.publication_author_service import PublicationAuthorService
from scholarchain.services.citation_service import CitationService

__all__ = [
    "UserService",
    "WalletService",
    "AuthorService",
    "PublicationService",
    "PublicationAuthorService",
    "CitationService",
]
