"""API-level tests for GET /api/v1/artworks."""

import pytest

from helpers import create_artwork, auth_headers

LIST_URL = "/api/v1/artworks"


async def list_titles(client, **params) -> list[str]:
    response = await client.get(LIST_URL, params=params)
    assert response.status_code == 200, response.text
    return [artwork["title"] for artwork in response.json()["artworks"]]


class TestBaselineVisibility:
    """Only published, public artworks are ever listed."""

    async def test_drafts_archived_and_private_are_excluded(self, client, database, artist):
        await create_artwork(database, artist, "Published")
        await create_artwork(database, artist, "Draft", status="draft")
        await create_artwork(database, artist, "Archived", status="archived")
        await create_artwork(database, artist, "Private", is_public=False)

        assert await list_titles(client) == ["Published"]

    async def test_owner_does_not_see_own_draft_in_listing(self, client, database, artist):
        await create_artwork(database, artist, "Sunset", status="draft")

        response = await client.get(LIST_URL, headers=auth_headers(artist))

        assert response.status_code == 200
        assert response.json()["artworks"] == []
        assert response.json()["pagination"]["totalItems"] == 0
        assert response.json()["pagination"]["totalPages"] == 0


class TestFilters:
    """Every filter narrows the result."""

    async def test_category_is_exact(self, client, database, artist):
        await create_artwork(database, artist, "Oil", category="painting")
        await create_artwork(database, artist, "Bronze", category="sculpture")
        await create_artwork(database, artist, "Mixed", category="painting-mixed")

        assert await list_titles(client, category="painting") == ["Oil"]

    async def test_price_range_is_inclusive(self, client, database, artist):
        await create_artwork(database, artist, "Cheap", price=50, minutes_ago=3)
        await create_artwork(database, artist, "Low", price=100, minutes_ago=2)
        await create_artwork(database, artist, "High", price=200, minutes_ago=1)
        await create_artwork(database, artist, "Luxury", price=500)

        titles = await list_titles(client, minPrice="100", maxPrice="200")

        assert titles == ["High", "Low"]

    async def test_medium_and_style_match_case_insensitive_substrings(self, client, database, artist):
        await create_artwork(database, artist, "A", medium="Oil on Canvas", style="Abstract Expressionism")
        await create_artwork(database, artist, "B", medium="Watercolor", style="Abstract")
        await create_artwork(database, artist, "C", medium="oil pastel", style="Realism")

        assert sorted(await list_titles(client, medium="OIL")) == ["A", "C"]
        assert sorted(await list_titles(client, style="abstract")) == ["A", "B"]
        assert await list_titles(client, medium="oil", style="abstract") == ["A"]

    async def test_substring_filter_treats_wildcards_literally(self, client, database, artist):
        await create_artwork(database, artist, "Percent", medium="100% cotton")
        await create_artwork(database, artist, "Plain", medium="cotton")

        assert await list_titles(client, medium="%") == ["Percent"]

    async def test_featured_and_artist_filters(self, client, database, artist, other_artist):
        await create_artwork(database, artist, "Mine featured", featured=True)
        await create_artwork(database, artist, "Mine plain")
        await create_artwork(database, other_artist, "Theirs featured", featured=True)

        assert sorted(await list_titles(client, featured="true")) == ["Mine featured", "Theirs featured"]
        assert await list_titles(client, featured="true", artistId=artist.id) == ["Mine featured"]
        assert await list_titles(client, featured="false") == ["Mine plain"]

    async def test_search_matches_every_term_across_fields_and_tags(self, client, database, artist):
        await create_artwork(database, artist, "Blue Harbor", description="Boats at dawn")
        await create_artwork(database, artist, "Red Field", tags=["harbor"], medium="acrylic")
        await create_artwork(database, artist, "Green Hills", style="Impressionism")

        assert sorted(await list_titles(client, search="harbor")) == ["Blue Harbor", "Red Field"]
        assert await list_titles(client, search="harbor dawn") == ["Blue Harbor"]
        assert await list_titles(client, search="impression") == ["Green Hills"]
        assert await list_titles(client, search="nothing-matches") == []


class TestSortingAndPagination:
    """Ordering is deterministic and pages partition the result set."""

    async def test_default_sort_is_newest_first(self, client, database, artist):
        await create_artwork(database, artist, "Old", minutes_ago=10)
        await create_artwork(database, artist, "New", minutes_ago=1)
        await create_artwork(database, artist, "Middle", minutes_ago=5)

        assert await list_titles(client) == ["New", "Middle", "Old"]

    async def test_sort_by_price_ascending(self, client, database, artist):
        await create_artwork(database, artist, "Mid", price=300)
        await create_artwork(database, artist, "Low", price=10)
        await create_artwork(database, artist, "High", price=900)

        assert await list_titles(client, sortBy="price", sortOrder="asc") == ["Low", "Mid", "High"]
        assert await list_titles(client, sortBy="price", sortOrder="desc") == ["High", "Mid", "Low"]

    async def test_pages_cover_all_items_without_overlap(self, client, database, artist):
        # Identical timestamps force the id tie-break
        for index in range(7):
            await create_artwork(database, artist, f"Piece {index}")

        seen: list[str] = []
        for page in (1, 2, 3):
            response = await client.get(LIST_URL, params={"page": page, "limit": 3})
            body = response.json()
            assert body["pagination"] == {
                "currentPage": page,
                "totalPages": 3,
                "totalItems": 7,
                "itemsPerPage": 3,
            }
            seen.extend(artwork["id"] for artwork in body["artworks"])

        assert len(seen) == 7
        assert len(set(seen)) == 7

    async def test_page_past_the_end_is_empty(self, client, database, artist):
        await create_artwork(database, artist, "Only")

        response = await client.get(LIST_URL, params={"page": 5})

        assert response.status_code == 200
        assert response.json()["artworks"] == []
        assert response.json()["pagination"]["totalItems"] == 1


class TestListingValidation:
    """Invalid listing parameters are rejected with validation_error."""

    @pytest.mark.parametrize("params", [
        {"sortBy": "price; DROP TABLE artworks"},
        {"sortBy": "artist"},
        {"sortOrder": "sideways"},
        {"page": 0},
        {"limit": 0},
        {"limit": 101},
        {"page": "100000000000000000000"},
        {"artistId": "100000000000000000000"},
    ])
    async def test_rejects_invalid_parameters(self, client, params):
        response = await client.get(LIST_URL, params=params)

        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"

    async def test_largest_page_is_empty(self, client, database, artist):
        await create_artwork(database, artist, "Only")

        response = await client.get(LIST_URL, params={"page": 2**31 - 1, "limit": 100})

        assert response.status_code == 200
        assert response.json()["artworks"] == []
        assert response.json()["pagination"]["totalItems"] == 1

    async def test_rejects_inverted_price_range(self, client):
        response = await client.get(LIST_URL, params={"minPrice": 500, "maxPrice": 100})

        assert response.status_code == 400
        assert response.json() == {
            "kind": "validation_error",
            "message": "Value error, minPrice cannot be greater than maxPrice",
        }


class TestListingResponseShape:
    """Listed artworks carry images, variants and engagement stats."""

    async def test_images_carry_variants_and_main_flag(self, client, database, artist):
        await create_artwork(database, artist, "Framed", images=["artists/1/a.jpg", "artists/1/b.jpg"])

        artwork = (await client.get(LIST_URL)).json()["artworks"][0]

        assert [image["isMain"] for image in artwork["images"]] == [True, False]
        assert artwork["images"][0]["variants"]["thumbnail"] == "https://cdn.test/thumb/artists/1/a.jpg"
        assert artwork["artist"]["displayName"] == "The Painter"
        assert artwork["likeCount"] == 0
        assert artwork["isLiked"] is None

    async def test_is_liked_reflects_authenticated_viewer(self, client, database, artist, buyer):
        created = await create_artwork(database, artist, "Loved")
        await client.post(f"{LIST_URL}/{created.uuid}/like", headers=auth_headers(buyer))

        artwork = (await client.get(LIST_URL, headers=auth_headers(buyer))).json()["artworks"][0]

        assert artwork["likeCount"] == 1
        assert artwork["isLiked"] is True
