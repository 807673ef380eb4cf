from scholarchain.schemas.schemas import (
    UserBase, UserCreate, UserUpdate, UserResponse,
    WalletCreate, WalletUpdate, WalletResponse, WalletLinkRequest, UserWalletResponse, UserWalletDetail,
    AuthorCreate, AuthorUpdate, AuthorResponse,
    PublicationBase, PublicationCreate, PublicationUpdate, PublicationResponse,
    OnchainStatusUpdate, PublicationAuthorEntry,
    PublicationAuthorCreate, PublicationAuthorDelete, PublicationAuthorOrderUpdate,
    PublicationAuthorResponse, PublicationAuthorDetail,
    CitationCreate, CitationUpdate, CitationResponse,
    CountResponse, HasAuthorResponse,
    SignInResponse, ErrorResponse
)

__all__ = [
    "UserBase", "UserCreate", "UserUpdate", "UserResponse",
    "WalletCreate", "WalletUpdate", "WalletResponse", "WalletLinkRequest", "UserWalletResponse", "UserWalletDetail",
    "AuthorCreate", "AuthorUpdate", "AuthorResponse",
    "PublicationBase", "PublicationCreate", "PublicationUpdate", "PublicationResponse",
    "OnchainStatusUpdate", "PublicationAuthorEntry",
    "PublicationAuthorCreate", "PublicationAuthorDelete", "PublicationAuthorOrderUpdate",
    "PublicationAuthorResponse", "PublicationAuthorDetail",
    "CitationCreate", "CitationUpdate", "CitationResponse",
    "CountResponse", "HasAuthorResponse",
    "SignInResponse", "ErrorResponse"
]
