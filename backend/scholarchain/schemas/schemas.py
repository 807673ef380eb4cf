import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator
from scholarchain.models import MAX_ROYALTY_BPS

PublicationStatusLiteral = Literal["PENDING_ONCHAIN", "PUBLISHED", "FAILED"]


class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    full_name: str | None = Field(default=None, max_length=100)
    avatar_s3key: str | None = None


class UserCreate(UserBase):
    pass


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=50)
    email: EmailStr | None = None
    full_name: str | None = Field(default=None, max_length=100)
    avatar_s3key: str | None = None


class UserResponse(UserBase):
    privy_id: str
    # Derived sign-in addresses are not always deliverable
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WalletCreate(BaseModel):
    wallet_id: str = Field(min_length=1, max_length=255)
    wallet_address: str = Field(min_length=1, max_length=255)
    is_primary: bool = False


class WalletUpdate(BaseModel):
    wallet_address: str = Field(min_length=1, max_length=255)


class WalletResponse(BaseModel):
    wallet_id: str
    wallet_address: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WalletLinkRequest(BaseModel):
    is_primary: bool = False


class UserWalletResponse(BaseModel):
    user_id: str
    wallet_id: str
    is_primary: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserWalletDetail(UserWalletResponse):
    wallet_address: str | None = None


class AuthorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    affiliation: str | None = Field(default=None, max_length=200)
    wallet_id: str = Field(min_length=1, max_length=255)


class AuthorUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    affiliation: str | None = Field(default=None, max_length=200)
    wallet_id: str | None = Field(default=None, min_length=1, max_length=255)


class AuthorResponse(BaseModel):
    privy_id: str
    name: str
    email: str | None
    affiliation: str | None
    wallet_id: str
    wallet_address: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublicationBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    about: str
    tags: list[str] = []
    s3key: str = Field(min_length=1)
    price: int = Field(default=0, ge=0)
    citation_royalty_bps: int = Field(default=0, ge=0, le=MAX_ROYALTY_BPS)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class PublicationAuthorEntry(BaseModel):
    author_id: str
    author_order: int = 0


class PublicationCreate(PublicationBase):
    authors: list[PublicationAuthorEntry] = []


class PublicationUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    about: str | None = None
    tags: list[str] | None = None
    s3key: str | None = Field(default=None, min_length=1)
    price: int | None = Field(default=None, ge=0)
    citation_royalty_bps: int | None = Field(default=None, ge=0, le=MAX_ROYALTY_BPS)


class PublicationResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    title: str
    about: str
    tags: list[str]
    s3key: str
    transaction_hash: str | None
    status: PublicationStatusLiteral
    price: int
    citation_royalty_bps: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OnchainStatusUpdate(BaseModel):
    status: Literal["PUBLISHED", "FAILED"]
    transaction_hash: str | None = Field(default=None, max_length=255)


class PublicationAuthorCreate(BaseModel):
    publication_id: uuid.UUID
    author_id: str
    author_order: int = 0


class PublicationAuthorDelete(BaseModel):
    publication_id: uuid.UUID
    author_id: str


class PublicationAuthorOrderUpdate(PublicationAuthorDelete):
    author_order: int


class PublicationAuthorResponse(BaseModel):
    publication_id: uuid.UUID
    author_id: str
    author_order: int

    class Config:
        from_attributes = True


class PublicationAuthorDetail(PublicationAuthorResponse):
    name: str
    email: str | None = None
    affiliation: str | None = None
    wallet_address: str | None = None


class CitationCreate(BaseModel):
    citing_publication_id: uuid.UUID
    cited_publication_id: uuid.UUID
    citation_context: str | None = None


class CitationUpdate(BaseModel):
    citation_context: str | None = None


class CitationResponse(BaseModel):
    id: uuid.UUID
    citing_publication_id: uuid.UUID
    cited_publication_id: uuid.UUID
    citation_context: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class CountResponse(BaseModel):
    count: int


class HasAuthorResponse(BaseModel):
    has_author: bool


class SignInResponse(BaseModel):
    user: UserResponse
    author: AuthorResponse | None = None
    is_new_user: bool


class ErrorResponse(BaseModel):
    detail: str
    kind: str | None = None
    constraint: str | None = None
