"""Tests for like toggling and the related-artworks feed."""

import uuid

from app.services.artwork_repository import ArtworkRepository

from helpers import create_artwork, like_rows, auth_headers

ARTWORKS_URL = "/api/v1/artworks"


class TestLikeToggle:
    """POST /api/v1/artworks/{uuid}/like"""

    async def test_first_toggle_likes(self, client, database, artist, buyer):
        created = await create_artwork(database, artist, "Loved")

        response = await client.post(f"{ARTWORKS_URL}/{created.uuid}/like", headers=auth_headers(buyer))

        assert response.status_code == 200
        assert response.json() == {"message": "Artwork liked", "liked": True, "likeCount": 1}

    async def test_toggling_twice_restores_unliked_state(self, client, database, artist, buyer):
        created = await create_artwork(database, artist, "Fickle")
        url = f"{ARTWORKS_URL}/{created.uuid}/like"

        first = await client.post(url, headers=auth_headers(buyer))
        second = await client.post(url, headers=auth_headers(buyer))

        assert first.json()["liked"] is True
        assert second.json() == {"message": "Artwork unliked", "liked": False, "likeCount": 0}
        assert await like_rows(database, created.id) == []

    async def test_counts_likes_from_several_users(self, client, database, artist, other_artist, buyer):
        created = await create_artwork(database, artist, "Shared")
        url = f"{ARTWORKS_URL}/{created.uuid}/like"

        await client.post(url, headers=auth_headers(buyer))
        response = await client.post(url, headers=auth_headers(other_artist))

        assert response.json()["likeCount"] == 2

        detail = await client.get(f"{ARTWORKS_URL}/{created.uuid}", headers=auth_headers(buyer))
        assert detail.json()["artwork"]["likeCount"] == 2
        assert detail.json()["artwork"]["isLiked"] is True

    async def test_requires_authentication(self, client, database, artist):
        created = await create_artwork(database, artist, "Loved")

        response = await client.post(f"{ARTWORKS_URL}/{created.uuid}/like")

        assert response.status_code == 401

    async def test_missing_artwork_is_404(self, client, buyer):
        response = await client.post(f"{ARTWORKS_URL}/{uuid.uuid4()}/like", headers=auth_headers(buyer))

        assert response.status_code == 404

    async def test_hidden_artwork_is_404_for_strangers(self, client, database, artist, buyer):
        hidden = await create_artwork(database, artist, "Hidden", status="draft", is_public=False)

        response = await client.post(f"{ARTWORKS_URL}/{hidden.uuid}/like", headers=auth_headers(buyer))

        assert response.status_code == 404


class TestLikeStorage:
    """Repository-level like writes are idempotent."""

    async def test_double_add_stores_one_like(self, session, database, artist, buyer):
        created = await create_artwork(database, artist, "Once")

        assert await ArtworkRepository.add_like(session, created.id, buyer.id) is True
        assert await ArtworkRepository.add_like(session, created.id, buyer.id) is False
        await session.commit()

        assert await ArtworkRepository.count_likes(session, created.id) == 1

    async def test_remove_without_like_is_a_no_op(self, session, database, artist, buyer):
        created = await create_artwork(database, artist, "Never")

        assert await ArtworkRepository.remove_like(session, created.id, buyer.id) is False
        assert await ArtworkRepository.count_likes(session, created.id) == 0


class TestRelatedArtworks:
    """GET /api/v1/artworks/{uuid}/related"""

    async def test_matches_category_style_artist_or_tag(self, client, database, artist, other_artist):
        source = await create_artwork(
            database, artist, "Source", category="painting", style="Cubism", tags=["portrait"]
        )
        await create_artwork(database, other_artist, "Same category", category="painting", minutes_ago=1)
        await create_artwork(database, other_artist, "Same style", style="Cubism", minutes_ago=2)
        await create_artwork(database, artist, "Same artist", category="print", minutes_ago=3)
        await create_artwork(database, other_artist, "Shared tag", tags=["portrait"], minutes_ago=4)
        await create_artwork(database, other_artist, "Unrelated", category="sculpture", style="Baroque")

        response = await client.get(f"{ARTWORKS_URL}/{source.uuid}/related")

        assert response.status_code == 200
        titles = [artwork["title"] for artwork in response.json()["relatedArtworks"]]
        assert titles == ["Same category", "Same style", "Same artist", "Shared tag"]

    async def test_excludes_unlisted_artworks(self, client, database, artist):
        source = await create_artwork(database, artist, "Source", category="painting")
        await create_artwork(database, artist, "Draft", category="painting", status="draft")
        await create_artwork(database, artist, "Private", category="painting", is_public=False)

        response = await client.get(f"{ARTWORKS_URL}/{source.uuid}/related")

        assert response.json()["relatedArtworks"] == []

    async def test_null_category_does_not_match_null(self, client, database, artist, other_artist):
        source = await create_artwork(database, artist, "Source")
        await create_artwork(database, other_artist, "Also uncategorised")

        response = await client.get(f"{ARTWORKS_URL}/{source.uuid}/related")

        assert response.json()["relatedArtworks"] == []

    async def test_respects_limit(self, client, database, artist):
        source = await create_artwork(database, artist, "Source")
        for index in range(5):
            await create_artwork(database, artist, f"Sibling {index}", minutes_ago=index + 1)

        response = await client.get(f"{ARTWORKS_URL}/{source.uuid}/related", params={"limit": 2})

        titles = [artwork["title"] for artwork in response.json()["relatedArtworks"]]
        assert titles == ["Sibling 0", "Sibling 1"]

    async def test_limit_out_of_range_is_rejected(self, client, database, artist):
        source = await create_artwork(database, artist, "Source")

        response = await client.get(f"{ARTWORKS_URL}/{source.uuid}/related", params={"limit": 25})

        assert response.status_code == 400

    async def test_missing_source_is_404(self, client):
        response = await client.get(f"{ARTWORKS_URL}/{uuid.uuid4()}/related")

        assert response.status_code == 404
