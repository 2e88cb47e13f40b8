"""Wishlist and claim endpoints over HTTP, including claim redaction."""

from httpx import AsyncClient

from conftest import register


async def _add(client: AsyncClient, group: dict, user: dict, **body) -> dict:
    body.setdefault("title", "Gift")
    response = await client.post(f"/api/v1/groups/{group['id']}/wishlist", json=body, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


async def _list(client: AsyncClient, group: dict, user: dict) -> list[dict]:
    response = await client.get(f"/api/v1/groups/{group['id']}/wishlist", headers=user["headers"])
    assert response.status_code == 200, response.text
    return response.json()["items"]


class TestAddItem:
    async def test_add_item(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(
            client, group, bob,
            title="  Board game ", url="https://example.com/game", notes="Any co-op game", priority=3,
        )
        assert item["title"] == "Board game"
        assert item["url"] == "https://example.com/game"
        assert item["priority"] == 3
        assert item["owner"]["id"] == bob["id"]
        assert item["claimed"] is False
        assert item["claim"] is None

    async def test_priority_defaults_to_zero(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        assert item["priority"] == 0

    async def test_blank_title_rejected(self, client: AsyncClient, bob: dict, group: dict):
        response = await client.post(
            f"/api/v1/groups/{group['id']}/wishlist", json={"title": "   "}, headers=bob["headers"]
        )
        assert response.status_code == 422

    async def test_relative_url_rejected(self, client: AsyncClient, bob: dict, group: dict):
        for field in ("url", "image_url"):
            response = await client.post(
                f"/api/v1/groups/{group['id']}/wishlist",
                json={"title": "Socks", field: "/products/socks"},
                headers=bob["headers"],
            )
            assert response.status_code == 422

    async def test_non_http_url_rejected(self, client: AsyncClient, bob: dict, group: dict):
        response = await client.post(
            f"/api/v1/groups/{group['id']}/wishlist",
            json={"title": "Socks", "url": "ftp://example.com/socks"},
            headers=bob["headers"],
        )
        assert response.status_code == 422

    async def test_outsider_cannot_add(self, client: AsyncClient, group: dict):
        eve = await register(client, "eve@example.com", "Eve")
        response = await client.post(
            f"/api/v1/groups/{group['id']}/wishlist", json={"title": "Socks"}, headers=eve["headers"]
        )
        assert response.status_code == 403


class TestListAndUpdate:
    async def test_ordering_by_priority_then_newest(self, client: AsyncClient, alice: dict, bob: dict, group: dict):
        low = await _add(client, group, bob, title="Low", priority=0)
        old_high = await _add(client, group, alice, title="Old high", priority=5)
        new_high = await _add(client, group, bob, title="New high", priority=5)

        items = await _list(client, group, alice)
        assert [i["id"] for i in items] == [new_high["id"], old_high["id"], low["id"]]

    async def test_partial_update(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks", notes="Wool", priority=1)

        response = await client.patch(f"/api/v1/wishlist/{item['id']}", json={"priority": 9}, headers=bob["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["priority"] == 9
        assert data["title"] == "Socks"
        assert data["notes"] == "Wool"

    async def test_update_clears_notes_with_null(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks", notes="Wool")
        response = await client.patch(f"/api/v1/wishlist/{item['id']}", json={"notes": None}, headers=bob["headers"])
        assert response.json()["notes"] is None

    async def test_null_title_rejected(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        response = await client.patch(f"/api/v1/wishlist/{item['id']}", json={"title": None}, headers=bob["headers"])
        assert response.status_code == 422

    async def test_only_owner_updates(self, client: AsyncClient, alice: dict, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        response = await client.patch(f"/api/v1/wishlist/{item['id']}", json={"title": "Hat"}, headers=alice["headers"])
        assert response.status_code == 403

    async def test_update_missing_item(self, client: AsyncClient, bob: dict):
        response = await client.patch("/api/v1/wishlist/9999", json={"title": "Hat"}, headers=bob["headers"])
        assert response.status_code == 404


class TestDelete:
    async def test_owner_deletes_claimed_item(self, client: AsyncClient, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])

        response = await client.delete(f"/api/v1/wishlist/{item['id']}", headers=bob["headers"])
        assert response.status_code == 204
        assert await _list(client, group, carol) == []

    async def test_only_owner_deletes(self, client: AsyncClient, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        response = await client.delete(f"/api/v1/wishlist/{item['id']}", headers=carol["headers"])
        assert response.status_code == 403


class TestClaims:
    async def test_claim_round_trip_and_redaction(
        self, client: AsyncClient, alice: dict, bob: dict, carol: dict, group: dict
    ):
        item = await _add(client, group, alice, title="Book", url="https://example.com/book", notes="Hardcover")

        seen_by_bob = (await _list(client, group, bob))[0]
        assert seen_by_bob["title"] == "Book"
        assert seen_by_bob["url"] == "https://example.com/book"
        assert seen_by_bob["notes"] == "Hardcover"
        assert seen_by_bob["claimed"] is False

        claim = await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=bob["headers"])
        assert claim.status_code == 201
        assert claim.json()["claimed_by"]["id"] == bob["id"]

        seen_by_carol = (await _list(client, group, carol))[0]
        assert seen_by_carol["claimed"] is True
        assert seen_by_carol["claim"]["claimed_by"]["id"] == bob["id"]

        # Alice is the group admin and the owner: she learns only that it is claimed
        seen_by_alice = (await _list(client, group, alice))[0]
        assert seen_by_alice["claimed"] is True
        assert seen_by_alice["claim"]["is_claimed"] is True
        assert "claimed_at" in seen_by_alice["claim"]
        assert "claimed_by" not in seen_by_alice["claim"]

        raw = (await client.get(f"/api/v1/groups/{group['id']}/wishlist", headers=alice["headers"])).text
        assert "bob@example.com" not in raw
        assert '"Bob"' not in raw

    async def test_self_claim(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        response = await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=bob["headers"])
        assert response.status_code == 409
        assert response.json()["code"] == "self_claim"

    async def test_second_claim_conflicts(self, client: AsyncClient, alice: dict, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        assert (await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])).status_code == 201

        response = await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=alice["headers"])
        assert response.status_code == 409
        assert response.json()["code"] == "already_claimed"

    async def test_outsider_cannot_claim(self, client: AsyncClient, bob: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        eve = await register(client, "eve@example.com", "Eve")
        response = await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=eve["headers"])
        assert response.status_code == 403

    async def test_unclaim(self, client: AsyncClient, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])

        response = await client.delete(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])
        assert response.status_code == 204
        assert (await _list(client, group, carol))[0]["claimed"] is False

    async def test_only_claimer_unclaims(self, client: AsyncClient, alice: dict, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        await client.post(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])

        response = await client.delete(f"/api/v1/wishlist/{item['id']}/claim", headers=alice["headers"])
        assert response.status_code == 403

    async def test_unclaim_without_claim(self, client: AsyncClient, bob: dict, carol: dict, group: dict):
        item = await _add(client, group, bob, title="Socks")
        response = await client.delete(f"/api/v1/wishlist/{item['id']}/claim", headers=carol["headers"])
        assert response.status_code == 404
