"""Tests for the REST endpoints, driven through FastAPI's TestClient."""

import httpx
import pytest
from fastapi.testclient import TestClient

from loremaker.app import app
from loremaker.config import Settings
from loremaker.errors import PUBLIC_AVAILABILITY_MESSAGE
from loremaker.services.sheets import CharacterLibrary, get_library
from tests.helpers import FakeClock, RecordingHandler, gviz_body


DAY = "2025-01-01"

FEED = gviz_body(
    ["Name", "Faction", "Powers", "Cover Image"],
    [
        ["Ava", "Sentinels", "Flight 8", "https://img.example.com/ava.png"],
        ["Bo", "Veil", "Shield 3", ""],
        ["Cy", "Sentinels", "Shield 9", ""],
    ],
)


def _client(library):
    app.dependency_overrides[get_library] = lambda: library
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def bundled_client():
    """Client whose library has no sheet configured, so it serves the bundled roster."""
    library = CharacterLibrary(Settings(_env_file=None, sheet_id=None), clock=FakeClock(), day_key=DAY)
    return _client(library)


@pytest.fixture
def feed_client(settings):
    library = CharacterLibrary(
        settings,
        transport=httpx.MockTransport(RecordingHandler({"Characters": FEED})),
        clock=FakeClock(),
        day_key=DAY,
    )
    return _client(library)


# ---------------------------------------------------------------------------
# /api/characters
# ---------------------------------------------------------------------------

class TestCharacterList:

    def test_lists_roster(self, feed_client):
        resp = feed_client.get("/api/characters")
        assert resp.status_code == 200
        body = resp.json()
        assert [c["name"] for c in body["data"]] == ["Ava", "Bo", "Cy"]
        assert body["data"][0]["sourceIndex"] == 0
        assert "fetchedAt" in body

    def test_facet_filter_search_and_sort(self, feed_client):
        resp = feed_client.get("/api/characters", params={"faction": "Sentinels", "sort": "za"})
        assert [c["name"] for c in resp.json()["data"]] == ["Cy", "Ava"]

        resp = feed_client.get("/api/characters", params={"q": "shield", "powers": ["Shield", "Flight"],
                                                           "mode": "and"})
        assert resp.json()["data"] == []

        resp = feed_client.get("/api/characters", params={"q": "bo"})
        assert [c["name"] for c in resp.json()["data"]] == ["Bo"]

    def test_missing_config_is_503_with_public_message(self, bundled_client):
        resp = bundled_client.get("/api/characters")
        assert resp.status_code == 503
        assert resp.json() == {"error": PUBLIC_AVAILABILITY_MESSAGE}

    def test_upstream_outage_is_500(self, settings):
        library = CharacterLibrary(
            settings,
            transport=httpx.MockTransport(RecordingHandler({}, default=500)),
            clock=FakeClock(),
            fallback_roster=[],
            day_key=DAY,
        )
        resp = _client(library).get("/api/characters")
        assert resp.status_code == 500
        assert resp.json() == {"error": PUBLIC_AVAILABILITY_MESSAGE}

    def test_bad_sort_mode(self, feed_client):
        assert feed_client.get("/api/characters", params={"sort": "sideways"}).status_code == 422


# ---------------------------------------------------------------------------
# /api/characters/{slug}
# ---------------------------------------------------------------------------

class TestCharacterDetail:

    def test_detail_with_related(self, bundled_client):
        resp = bundled_client.get("/api/characters/nyx-adebayo")
        assert resp.status_code == 200
        body = resp.json()
        assert body["character"]["name"] == "Nyx Adebayo"
        assert body["character"]["eraTags"] == ["Modern Age"]
        assert len(body["related"]) == 4
        assert "nyx-adebayo" not in {card["slug"] for card in body["related"]}

    def test_unknown_slug(self, bundled_client):
        assert bundled_client.get("/api/characters/nobody").status_code == 404


# ---------------------------------------------------------------------------
# /api/featured and /api/taxonomies
# ---------------------------------------------------------------------------

class TestDerivedViews:

    def test_featured_is_stable_for_the_day(self, bundled_client):
        first = bundled_client.get("/api/featured").json()
        second = bundled_client.get("/api/featured").json()
        assert first["character"]["id"] == second["character"]["id"]
        assert first["character"]["id"] in {"nyx-adebayo", "sekhmet-reborn", "iris-vale"}
        assert first["faction"]["members"][0]["id"] == first["character"]["id"]

    def test_taxonomies(self, bundled_client):
        body = bundled_client.get("/api/taxonomies").json()
        assert set(body) == {"factions", "powers", "locations", "timelines"}
        assert body["factions"][0]["name"] == "Sentinels of Dawn"
        assert body["factions"][0]["memberCount"] == 2

    def test_taxonomy_entry(self, bundled_client):
        resp = bundled_client.get("/api/taxonomies/factions/sentinels-of-dawn")
        assert resp.status_code == 200
        body = resp.json()
        assert body["entry"]["filterKey"] == "faction"
        assert [m["name"] for m in body["entry"]["members"]] == ["Kofi Mensah", "Nyx Adebayo"]
        assert "sentinels-of-dawn" not in {item["slug"] for item in body["related"]}

    @pytest.mark.parametrize("path", [
        "/api/taxonomies/villains/sentinels-of-dawn",
        "/api/taxonomies/faction/nowhere",
    ])
    def test_taxonomy_not_found(self, bundled_client, path):
        assert bundled_client.get(path).status_code == 404


# ---------------------------------------------------------------------------
# /api/arena
# ---------------------------------------------------------------------------

class TestArena:

    def test_seeded_duel_is_replayable(self, bundled_client):
        params = {"left": "sekhmet-reborn", "right": "tomas-reyes", "seed": 7}
        first = bundled_client.get("/api/arena", params=params)
        assert first.status_code == 200
        assert first.json() == bundled_client.get("/api/arena", params=params).json()
        assert len(first.json()["timeline"]) == 3

    def test_same_character_twice(self, bundled_client):
        resp = bundled_client.get("/api/arena", params={"left": "iris-vale", "right": "iris-vale"})
        assert resp.status_code == 400

    def test_unknown_fighter(self, bundled_client):
        resp = bundled_client.get("/api/arena", params={"left": "iris-vale", "right": "nobody"})
        assert resp.status_code == 404
