"""Tests for user records, sign-in and cascading deletes."""

import asyncio
import hashlib

import pytest
from sqlalchemy import func, select

from scholarchain.core.errors import ConstraintViolation, NotFoundError
from scholarchain.models import Author, Citation, Publication, PublicationAuthor, User, UserWallet, Wallet
from scholarchain.services import CitationService, UserService
from scholarchain.services.user_service import derived_identity
from factories import make_author, make_publication, make_user


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_create_and_get(db):
    await make_user(db, "did:privy:alice")
    user = await UserService(db).get("did:privy:alice")
    assert user.username == "alice"
    assert user.email == "alice@example.org"
    assert user.created_at is not None


@pytest.mark.asyncio
async def test_get_missing_user(db):
    with pytest.raises(NotFoundError):
        await UserService(db).get("did:privy:nobody")


@pytest.mark.asyncio
async def test_get_by_username(db):
    await make_user(db, "did:privy:alice")
    service = UserService(db)
    assert (await service.get_by_username("alice")).privy_id == "did:privy:alice"
    with pytest.raises(NotFoundError):
        await service.get_by_username("bob")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username, email, constraint",
    [
        ("alice", "other@example.org", "uq_users_username"),
        ("other", "alice@example.org", "uq_users_email"),
    ],
)
async def test_username_and_email_are_unique(db, username, email, constraint):
    await make_user(db, "did:privy:alice")
    with pytest.raises(ConstraintViolation) as info:
        await UserService(db).create("did:privy:bob", username, email)
    assert info.value.kind == "unique"
    assert info.value.constraint == constraint
    assert await _count(db, User) == 1


@pytest.mark.asyncio
async def test_duplicate_privy_id_names_primary_key(db):
    await make_user(db, "did:privy:alice")
    db.expunge_all()
    with pytest.raises(ConstraintViolation) as info:
        await UserService(db).create("did:privy:alice", "alice2", "alice2@example.org")
    assert info.value.constraint == "users_pkey"


@pytest.mark.asyncio
async def test_update_whitelists_fields_and_bumps_timestamp(db):
    user = await make_user(db, "did:privy:alice")
    before = user.updated_at

    await asyncio.sleep(0.01)
    updated = await UserService(db).update(
        "did:privy:alice", full_name="Alice Liddell", privy_id="did:privy:evil", created_at=None
    )
    assert updated.full_name == "Alice Liddell"
    assert updated.privy_id == "did:privy:alice"
    assert updated.updated_at > before


@pytest.mark.asyncio
async def test_update_missing_user(db):
    with pytest.raises(NotFoundError):
        await UserService(db).update("did:privy:nobody", full_name="x")


@pytest.mark.asyncio
async def test_list_is_paginated_newest_first(db):
    for name in ("a", "b", "c"):
        await make_user(db, f"did:privy:{name}")
        await asyncio.sleep(0.01)

    service = UserService(db)
    first = await service.list(page=1, limit=2)
    second = await service.list(page=2, limit=2)
    assert [u.username for u in first] == ["c", "b"]
    assert [u.username for u in second] == ["a"]
    assert await service.count() == 3


@pytest.mark.asyncio
async def test_delete_cascades_to_everything_the_user_owns(db):
    await make_author(db, "did:privy:alice")
    await make_author(db, "did:privy:bob")
    mine = await make_publication(db, "did:privy:alice", "Mine", authors=["did:privy:alice", "did:privy:bob"])
    theirs = await make_publication(db, "did:privy:bob", "Theirs", authors=["did:privy:bob"])
    await CitationService(db).create(theirs.id, mine.id)
    await CitationService(db).create(mine.id, theirs.id)

    await UserService(db).delete("did:privy:alice")

    assert await db.get(User, "did:privy:alice") is None
    assert await _count(db, Author) == 1
    assert await _count(db, UserWallet) == 1
    assert await _count(db, Publication) == 1
    assert await _count(db, PublicationAuthor) == 1
    assert await _count(db, Citation) == 0
    # Wallets outlive the links to them
    assert await _count(db, Wallet) == 2


@pytest.mark.asyncio
async def test_delete_missing_user(db):
    with pytest.raises(NotFoundError):
        await UserService(db).delete("did:privy:nobody")


def _sha8(privy_id):
    return hashlib.sha256(privy_id.encode()).hexdigest()[:8]


def test_derived_identity_uses_subject_suffix():
    username, email = derived_identity("did:privy:CLXY1234567890")
    assert username == f"user_clxy123456_{_sha8('did:privy:CLXY1234567890')}"
    assert email == "clxy1234567890@privy.user"


def test_derived_identity_differs_for_subjects_with_a_shared_prefix():
    first = derived_identity("did:privy:cm0000000001")
    second = derived_identity("did:privy:cm0000000002")
    assert first[0] != second[0]
    assert first[1] != second[1]


@pytest.mark.asyncio
async def test_sign_in_creates_user_once(db):
    service = UserService(db)
    user, author, created = await service.sign_in("did:privy:cm0000000001")
    assert created is True
    assert author is None
    assert user.username == f"user_cm00000000_{_sha8('did:privy:cm0000000001')}"
    assert user.full_name == "Privy User"

    again, author, created = await service.sign_in("did:privy:cm0000000001")
    assert created is False
    assert again.privy_id == user.privy_id
    assert await service.count() == 1


@pytest.mark.asyncio
async def test_sign_in_returns_existing_author(db):
    await make_author(db, "did:privy:alice")
    _, author, created = await UserService(db).sign_in("did:privy:alice")
    assert created is False
    assert author.name == "Alice"


@pytest.mark.asyncio
async def test_sign_in_with_shared_subject_prefix_creates_both_users(db):
    service = UserService(db)
    first, _, _ = await service.sign_in("did:privy:cm0000000001")
    second, _, created = await service.sign_in("did:privy:cm0000000002")
    assert created is True
    assert first.username != second.username
    assert await service.count() == 2


@pytest.mark.asyncio
async def test_loaded_user_stays_readable_after_rejected_write(db):
    alice = await make_user(db, "did:privy:alice")
    with pytest.raises(ConstraintViolation):
        await UserService(db).create("did:privy:bob", "alice", "bob@example.org")
    assert alice.username == "alice"
    updated = await UserService(db).update("did:privy:alice", full_name="Alice L.")
    assert updated.full_name == "Alice L."
