import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import (
    String, Text, Boolean, Integer, BigInteger, DateTime, ForeignKey,
    UniqueConstraint, Index, JSON, CheckConstraint, Uuid, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import ARRAY
from scholarchain.core.database import Base


class PublicationStatus(str, Enum):
    PENDING_ONCHAIN = "PENDING_ONCHAIN"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"


# Royalties are expressed in basis points: 10000 bps == 100%
MAX_ROYALTY_BPS = 10_000

# TEXT[] on PostgreSQL, a JSON list on SQLite
TagList = ARRAY(String).with_variant(JSON(), "sqlite")


def utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    privy_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100))
    avatar_s3key: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    author: Mapped["Author"] = relationship(
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    wallet_links: Mapped[list["UserWallet"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    publications: Mapped[list["Publication"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("email", name="uq_users_email"),
    )


class Wallet(Base):
    __tablename__ = "wallets"

    wallet_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    user_links: Mapped[list["UserWallet"]] = relationship(
        back_populates="wallet",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("wallet_address", name="uq_wallets_wallet_address"),)


class UserWallet(Base):
    __tablename__ = "user_wallets"

    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.privy_id", ondelete="CASCADE"), primary_key=True
    )
    wallet_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("wallets.wallet_id", ondelete="CASCADE"), primary_key=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    user: Mapped["User"] = relationship(back_populates="wallet_links")
    wallet: Mapped["Wallet"] = relationship(back_populates="user_links")

    __table_args__ = (
        Index("idx_user_wallets_user_id", "user_id"),
        Index("idx_user_wallets_wallet_id", "wallet_id"),
        Index(
            "uq_user_wallets_primary",
            "user_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary"),
        ),
    )

    @property
    def wallet_address(self) -> str | None:
        """Only valid once ``wallet`` has been eagerly loaded."""
        return self.wallet.wallet_address if self.wallet else None


class Author(Base):
    __tablename__ = "authors"

    privy_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.privy_id", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100))
    affiliation: Mapped[str | None] = mapped_column(String(200))
    wallet_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("wallets.wallet_id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    user: Mapped["User"] = relationship(back_populates="author")
    wallet: Mapped["Wallet"] = relationship(lazy="joined")
    publication_links: Mapped[list["PublicationAuthor"]] = relationship(
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_authors_email"),
        UniqueConstraint("wallet_id", name="uq_authors_wallet_id"),
    )

    @property
    def wallet_address(self) -> str | None:
        return self.wallet.wallet_address if self.wallet else None


class Publication(Base):
    __tablename__ = "publications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.privy_id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    about: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(TagList, nullable=False, default=list)
    s3key: Mapped[str] = mapped_column(String, nullable=False)
    transaction_hash: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=PublicationStatus.PENDING_ONCHAIN.value
    )
    price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    citation_royalty_bps: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    owner: Mapped["User"] = relationship(back_populates="publications")
    author_links: Mapped[list["PublicationAuthor"]] = relationship(
        back_populates="publication",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PublicationAuthor.author_order",
    )

    __table_args__ = (
        Index("ix_publications_user_id", "user_id"),
        Index("ix_publications_status", "status"),
        Index("ix_publications_transaction_hash", "transaction_hash"),
        CheckConstraint(
            "status IN ('PENDING_ONCHAIN', 'PUBLISHED', 'FAILED')", name="ck_publications_status"
        ),
        CheckConstraint("price >= 0", name="ck_publications_price_non_negative"),
        CheckConstraint(
            f"citation_royalty_bps >= 0 AND citation_royalty_bps <= {MAX_ROYALTY_BPS}",
            name="ck_publications_royalty_bps_range",
        ),
    )


class PublicationAuthor(Base):
    __tablename__ = "publication_authors"

    publication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("publications.id", ondelete="CASCADE"), primary_key=True
    )
    author_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("authors.privy_id", ondelete="CASCADE"), primary_key=True
    )
    author_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    publication: Mapped["Publication"] = relationship(back_populates="author_links")
    author: Mapped["Author"] = relationship(back_populates="publication_links")

    __table_args__ = (
        Index("idx_publication_authors_publication_id", "publication_id"),
        Index("idx_publication_authors_author_id", "author_id"),
    )


class Citation(Base):
    __tablename__ = "citations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    citing_publication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("publications.id", ondelete="CASCADE"), nullable=False
    )
    cited_publication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("publications.id", ondelete="CASCADE"), nullable=False
    )
    citation_context: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        UniqueConstraint("citing_publication_id", "cited_publication_id", name="uq_citations_pair"),
        CheckConstraint("citing_publication_id <> cited_publication_id", name="ck_citations_not_self"),
        Index("idx_citations_citing_publication_id", "citing_publication_id"),
        Index("idx_citations_cited_publication_id", "cited_publication_id"),
    )
