"""End-to-end tests for the /api/v1 routes and their error mapping."""

import hashlib

import pytest

from conftest import API

ALICE = "did:privy:alice0000001"
BOB = "did:privy:bob000000001"
MALLORY = "did:privy:mallory00001"


async def _onboard(client, auth, privy_id, wallet_id, address):
    """Sign in, register a primary wallet and an author profile."""
    headers = auth(privy_id)
    assert (await client.post(f"{API}/auth/privy/sign-in", headers=headers)).status_code == 201
    response = await client.post(
        f"{API}/wallets",
        json={"wallet_id": wallet_id, "wallet_address": address, "is_primary": True},
        headers=headers,
    )
    assert response.status_code == 201
    handle = privy_id.rsplit(":", 1)[-1]
    response = await client.post(
        f"{API}/authors",
        json={"name": handle.title(), "email": f"{handle}@uni.edu", "wallet_id": wallet_id},
        headers=headers,
    )
    assert response.status_code == 201
    return headers


async def _publish(client, headers, title="Proofs", **extra):
    body = {"title": title, "about": "Abstract", "s3key": f"papers/{title}.pdf", "tags": ["zk"], **extra}
    return await client.post(f"{API}/publications", json=body, headers=headers)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_routes_require_bearer_token(client, token_for):
    assert (await client.get(f"{API}/publications")).status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert (await client.get(f"{API}/publications", headers=bad)).status_code == 401
    basic = {"Authorization": f"Basic {token_for(ALICE)}"}
    assert (await client.get(f"{API}/publications", headers=basic)).status_code == 401


@pytest.mark.asyncio
async def test_sign_in_creates_then_returns_user(client, auth):
    first = await client.post(f"{API}/auth/privy/sign-in", headers=auth(ALICE))
    assert first.status_code == 201
    body = first.json()
    assert body["is_new_user"] is True
    assert body["author"] is None
    assert body["user"]["privy_id"] == ALICE
    assert body["user"]["username"] == "user_alice00000_" + hashlib.sha256(ALICE.encode()).hexdigest()[:8]

    again = await client.post(f"{API}/auth/privy/sign-in", headers=auth(ALICE))
    assert again.status_code == 200
    assert again.json()["is_new_user"] is False


@pytest.mark.asyncio
async def test_unregistered_caller_cannot_write(client, auth):
    response = await _publish(client, auth(ALICE))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_publication_lifecycle(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    await _onboard(client, auth, BOB, "w-bob", "0xbob")

    response = await _publish(
        client, alice, price=100, citation_royalty_bps=250,
        authors=[{"author_id": ALICE, "author_order": 0}, {"author_id": BOB, "author_order": 1}],
    )
    assert response.status_code == 201
    publication = response.json()
    assert publication["status"] == "PENDING_ONCHAIN"
    assert publication["user_id"] == ALICE
    pid = publication["id"]

    authors = (await client.get(f"{API}/publications/{pid}/authors", headers=alice)).json()
    assert [(a["author_id"], a["wallet_address"]) for a in authors] == [(ALICE, "0xalice"), (BOB, "0xbob")]

    response = await client.post(
        f"{API}/publications/{pid}/onchain-status", json={"status": "PUBLISHED"}, headers=alice
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_state"

    response = await client.post(
        f"{API}/publications/{pid}/onchain-status",
        json={"status": "PUBLISHED", "transaction_hash": "0xfeed"},
        headers=alice,
    )
    assert response.status_code == 200
    assert response.json()["transaction_hash"] == "0xfeed"

    response = await client.post(
        f"{API}/publications/{pid}/onchain-status", json={"status": "FAILED"}, headers=alice
    )
    assert response.status_code == 409

    listed = (await client.get(f"{API}/publications", params={"status": "PUBLISHED"}, headers=alice)).json()
    assert [p["id"] for p in listed] == [pid]
    count = (await client.get(f"{API}/publications/count", params={"user_id": BOB}, headers=alice)).json()
    assert count == {"count": 0}

    by_tag = (await client.get(f"{API}/publications/search/tag", params={"tag": "zk"}, headers=alice)).json()
    assert [p["id"] for p in by_tag] == [pid]

    mine = (await client.get(f"{API}/authors/{BOB}/publications", headers=alice)).json()
    assert [p["id"] for p in mine] == [pid]


@pytest.mark.asyncio
async def test_only_owner_may_change_publication(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    bob = await _onboard(client, auth, BOB, "w-bob", "0xbob")
    pid = (await _publish(client, alice)).json()["id"]

    assert (await client.put(f"{API}/publications/{pid}", json={"title": "Mine"}, headers=bob)).status_code == 403
    assert (await client.delete(f"{API}/publications/{pid}", headers=bob)).status_code == 403
    response = await client.post(
        f"{API}/publications/{pid}/onchain-status", json={"status": "FAILED"}, headers=bob
    )
    assert response.status_code == 403

    response = await client.put(f"{API}/publications/{pid}", json={"title": "Revised"}, headers=alice)
    assert response.status_code == 200
    assert response.json()["title"] == "Revised"


@pytest.mark.asyncio
async def test_constraint_errors_are_mapped(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    bob = auth(BOB)
    await client.post(f"{API}/auth/privy/sign-in", headers=bob)

    response = await client.post(
        f"{API}/wallets", json={"wallet_id": "w-dup", "wallet_address": "0xalice"}, headers=bob
    )
    assert response.status_code == 409
    assert response.json() == {
        "detail": "Unique constraint violated: uq_wallets_wallet_address",
        "kind": "unique",
        "constraint": "uq_wallets_wallet_address",
    }

    response = await _publish(client, alice, authors=[{"author_id": "did:privy:ghost"}])
    assert response.status_code == 409
    assert response.json()["kind"] == "foreign_key"

    pid = (await _publish(client, alice)).json()["id"]
    response = await client.post(
        f"{API}/citations",
        json={"citing_publication_id": pid, "cited_publication_id": pid},
        headers=alice,
    )
    assert response.status_code == 422
    assert response.json()["constraint"] == "ck_citations_not_self"

    response = await client.delete(f"{API}/wallets/w-alice", headers=alice)
    assert response.status_code == 409
    assert response.json()["kind"] == "foreign_key"


@pytest.mark.asyncio
async def test_request_validation_rejects_out_of_range_values(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    assert (await _publish(client, alice, price=-1)).status_code == 422
    assert (await _publish(client, alice, citation_royalty_bps=10_001)).status_code == 422
    assert (await _publish(client, alice, title="x" * 101)).status_code == 422


@pytest.mark.asyncio
async def test_missing_records_are_404(client, auth):
    headers = auth(ALICE)
    await client.post(f"{API}/auth/privy/sign-in", headers=headers)

    response = await client.get(f"{API}/publications/00000000-0000-0000-0000-000000000000", headers=headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"
    assert (await client.get(f"{API}/users/did:privy:nobody", headers=headers)).status_code == 404
    assert (await client.get(f"{API}/users/{ALICE}/wallets/primary", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_primary_wallet_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w1", "0x1")
    await client.post(f"{API}/wallets", json={"wallet_id": "w2", "wallet_address": "0x2"}, headers=alice)

    response = await client.put(f"{API}/wallets/w2/primary", headers=alice)
    assert response.status_code == 200
    assert response.json()["is_primary"] is True

    primary = (await client.get(f"{API}/users/{ALICE}/wallets/primary", headers=alice)).json()
    assert primary["wallet_id"] == "w2"
    wallets = (await client.get(f"{API}/users/{ALICE}/wallets", headers=alice)).json()
    assert [(w["wallet_id"], w["is_primary"]) for w in wallets] == [("w2", True), ("w1", False)]


@pytest.mark.asyncio
async def test_wallet_changes_need_sole_ownership(client, auth):
    await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    mallory = auth(MALLORY)
    await client.post(f"{API}/auth/privy/sign-in", headers=mallory)

    response = await client.put(f"{API}/wallets/w-alice", json={"wallet_address": "0xstolen"}, headers=mallory)
    assert response.status_code == 403

    # Claiming the wallet first does not open the door
    claim = await client.post(f"{API}/wallets/w-alice/link", json={}, headers=mallory)
    assert claim.status_code == 409
    assert claim.json()["kind"] == "invalid_state"
    assert (await client.put(f"{API}/wallets/w-alice", json={"wallet_address": "0xstolen"}, headers=mallory)).status_code == 403
    assert (await client.delete(f"{API}/wallets/w-alice", headers=mallory)).status_code == 403
    assert (await client.delete(f"{API}/wallets/w-alice/link", headers=mallory)).status_code == 404

    wallet = (await client.get(f"{API}/wallets/w-alice", headers=mallory)).json()
    assert wallet["wallet_address"] == "0xalice"
    author = (await client.get(f"{API}/authors/{ALICE}", headers=mallory)).json()
    assert author["wallet_id"] == "w-alice"


@pytest.mark.asyncio
async def test_owner_may_change_own_wallet(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    await client.post(f"{API}/wallets", json={"wallet_id": "w-spare", "wallet_address": "0xspare"}, headers=alice)

    response = await client.put(f"{API}/wallets/w-spare", json={"wallet_address": "0xspare2"}, headers=alice)
    assert response.json()["wallet_address"] == "0xspare2"
    payout = await client.delete(f"{API}/wallets/w-alice/link", headers=alice)
    assert payout.status_code == 409
    assert payout.json()["kind"] == "invalid_state"
    assert (await client.delete(f"{API}/wallets/w-spare", headers=alice)).status_code == 204


@pytest.mark.asyncio
async def test_author_list_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    await _onboard(client, auth, BOB, "w-bob", "0xbob")
    pid = (await _publish(client, alice, authors=[{"author_id": ALICE}])).json()["id"]

    response = await client.post(
        f"{API}/publication-authors", json={"publication_id": pid, "author_id": BOB, "author_order": 1}, headers=alice
    )
    assert response.status_code == 201

    response = await client.put(
        f"{API}/publication-authors/order",
        json={"publication_id": pid, "author_id": BOB, "author_order": -1},
        headers=alice,
    )
    assert response.json()["author_order"] == -1

    response = await client.put(
        f"{API}/publication-authors/{pid}", json=[{"author_id": BOB, "author_order": 0}], headers=alice
    )
    assert [row["author_id"] for row in response.json()] == [BOB]

    response = await client.request(
        "DELETE", f"{API}/publication-authors", json={"publication_id": pid, "author_id": BOB}, headers=alice
    )
    assert response.status_code == 204
    assert (await client.get(f"{API}/publications/{pid}/authors", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_citation_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    bob = await _onboard(client, auth, BOB, "w-bob", "0xbob")
    mine = (await _publish(client, alice, "Mine")).json()["id"]
    theirs = (await _publish(client, bob, "Theirs")).json()["id"]

    # Only the citing publication's owner may record the citation
    forbidden = await client.post(
        f"{API}/citations", json={"citing_publication_id": mine, "cited_publication_id": theirs}, headers=bob
    )
    assert forbidden.status_code == 403

    created = await client.post(
        f"{API}/citations",
        json={"citing_publication_id": mine, "cited_publication_id": theirs, "citation_context": "intro"},
        headers=alice,
    )
    assert created.status_code == 201
    cid = created.json()["id"]

    duplicate = await client.post(
        f"{API}/citations", json={"citing_publication_id": mine, "cited_publication_id": theirs}, headers=alice
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["constraint"] == "uq_citations_pair"

    pair = await client.get(
        f"{API}/citations/by-publications",
        params={"citing_publication_id": mine, "cited_publication_id": theirs},
        headers=bob,
    )
    assert pair.json()["id"] == cid
    assert (await client.get(f"{API}/citations/count", headers=bob)).json() == {"count": 1}

    cited_by = (await client.get(f"{API}/publications/{theirs}/cited-by", headers=bob)).json()
    assert [p["id"] for p in cited_by] == [mine]

    assert (await client.put(f"{API}/citations/{cid}", json={"citation_context": "x"}, headers=bob)).status_code == 403
    updated = await client.put(f"{API}/citations/{cid}", json={"citation_context": "methods"}, headers=alice)
    assert updated.json()["citation_context"] == "methods"

    assert (await client.delete(f"{API}/citations/{cid}", headers=alice)).status_code == 204
    assert (await client.get(f"{API}/citations/{cid}", headers=alice)).status_code == 404


@pytest.mark.asyncio
async def test_user_routes(client, auth):
    alice = auth(ALICE)
    response = await client.post(
        f"{API}/users", json={"username": "alice", "email": "alice@example.org"}, headers=alice
    )
    assert response.status_code == 201

    response = await client.put(f"{API}/users/me", json={"full_name": "Alice Liddell"}, headers=alice)
    assert response.json()["full_name"] == "Alice Liddell"
    assert response.json()["username"] == "alice"

    listed = (await client.get(f"{API}/users", params={"limit": 10}, headers=alice)).json()
    assert [u["privy_id"] for u in listed] == [ALICE]
    assert (await client.get(f"{API}/users", params={"limit": 1000}, headers=alice)).status_code == 422

    assert (await client.delete(f"{API}/users/me", headers=alice)).status_code == 204
    assert (await client.get(f"{API}/users/{ALICE}", headers=alice)).status_code == 404


@pytest.mark.asyncio
async def test_lookup_and_count_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    await _onboard(client, auth, BOB, "w-bob", "0xbob")
    await client.post(f"{API}/auth/privy/sign-in", headers=auth(MALLORY))

    assert (await client.get(f"{API}/users/count", headers=alice)).json() == {"count": 3}
    username = (await client.get(f"{API}/users/{BOB}", headers=alice)).json()["username"]
    by_username = await client.get(f"{API}/users/by-username/{username}", headers=alice)
    assert by_username.json()["privy_id"] == BOB
    assert (await client.get(f"{API}/users/by-username/nobody", headers=alice)).status_code == 404

    assert (await client.get(f"{API}/authors/count", headers=alice)).json() == {"count": 2}
    by_email = await client.get(f"{API}/authors/by-email", params={"email": "bob000000001@uni.edu"}, headers=alice)
    assert by_email.json()["privy_id"] == BOB
    missing = await client.get(f"{API}/authors/by-email", params={"email": "nobody@uni.edu"}, headers=alice)
    assert missing.status_code == 404

    primaries = await client.get(
        f"{API}/wallets/primaries", params=[("user_id", ALICE), ("user_id", BOB), ("user_id", MALLORY)], headers=alice
    )
    assert {user: wallet["wallet_id"] for user, wallet in primaries.json().items()} == {
        ALICE: "w-alice",
        BOB: "w-bob",
    }


@pytest.mark.asyncio
async def test_publication_author_query_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    await _onboard(client, auth, BOB, "w-bob", "0xbob")
    pid = (
        await _publish(
            client, alice,
            authors=[{"author_id": BOB, "author_order": 1}, {"author_id": ALICE, "author_order": 0}],
        )
    ).json()["id"]

    details = (await client.get(f"{API}/publication-authors/publication/{pid}", headers=alice)).json()
    assert [(row["author_id"], row["wallet_address"]) for row in details] == [(ALICE, "0xalice"), (BOB, "0xbob")]
    missing = await client.get(
        f"{API}/publication-authors/publication/00000000-0000-0000-0000-000000000000", headers=alice
    )
    assert missing.status_code == 404

    has_bob = await client.get(
        f"{API}/publication-authors/has-author", params={"publication_id": pid, "author_id": BOB}, headers=alice
    )
    assert has_bob.json() == {"has_author": True}
    has_mallory = await client.get(
        f"{API}/publication-authors/has-author", params={"publication_id": pid, "author_id": MALLORY}, headers=alice
    )
    assert has_mallory.json() == {"has_author": False}

    assert (await client.get(f"{API}/publication-authors/count/{pid}", headers=alice)).json() == {"count": 2}
    assert (await client.get(f"{API}/publication-authors/count/author/{BOB}", headers=alice)).json() == {"count": 1}
    listed = (await client.get(f"{API}/publication-authors/author/{BOB}", headers=alice)).json()
    assert [p["id"] for p in listed] == [pid]


@pytest.mark.asyncio
async def test_directional_citation_routes(client, auth):
    alice = await _onboard(client, auth, ALICE, "w-alice", "0xalice")
    bob = await _onboard(client, auth, BOB, "w-bob", "0xbob")
    mine = (await _publish(client, alice, "Mine")).json()["id"]
    theirs = (await _publish(client, bob, "Theirs")).json()["id"]
    pair = {"citing_publication_id": mine, "cited_publication_id": theirs}
    cid = (await client.post(f"{API}/citations", json=pair, headers=alice)).json()["id"]

    assert [c["id"] for c in (await client.get(f"{API}/citations/from/{mine}", headers=bob)).json()] == [cid]
    assert (await client.get(f"{API}/citations/from/{theirs}", headers=bob)).json() == []
    assert [c["id"] for c in (await client.get(f"{API}/citations/to/{theirs}", headers=bob)).json()] == [cid]
    received = await client.get(f"{API}/publications/{theirs}/citation-count", headers=bob)
    assert received.json() == {"count": 1}

    assert (await client.delete(f"{API}/citations/by-publications", params=pair, headers=bob)).status_code == 403
    assert (await client.delete(f"{API}/citations/by-publications", params=pair, headers=alice)).status_code == 204
    assert (await client.delete(f"{API}/citations/by-publications", params=pair, headers=alice)).status_code == 404
    assert (await client.get(f"{API}/publications/{theirs}/citation-count", headers=bob)).json() == {"count": 0}


@pytest.mark.asyncio
async def test_openapi_documents_error_body(client):
    schema = (await client.get("/openapi.json")).json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    responses = schema["paths"][f"{API}/publications/{{publication_id}}"]["get"]["responses"]
    assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
