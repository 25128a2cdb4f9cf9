"""
Tests for the game plan API.

Each test gets a fresh in-memory service injected through the
dependency override, so plans never leak between tests.
"""

import pytest
from fastapi.testclient import TestClient

from gameplanner.api.main import create_app
from gameplanner.api.schemas import PlayModel
from gameplanner.api.services import GamePlanService, get_game_plan_service
from gameplanner.core.models import SectionState


BASE = "/api/v1/game-plans"


@pytest.fixture
def service(config):
    return GamePlanService(config=config)


@pytest.fixture
def client(service):
    """Test client wired to the fresh service."""
    app = create_app()
    app.dependency_overrides[get_game_plan_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def loaded(client, play_pool, scouting):
    """Client with a play pool, a scouting report and an open plan."""
    plays = [PlayModel.from_play(play).model_dump() for play in play_pool]
    assert client.put(f"{BASE}/team/play-pool", json={"plays": plays}).status_code == 200
    response = client.put(f"{BASE}/team/opp/scouting", json=scouting.to_dict())
    assert response.status_code == 200
    assert client.post(f"{BASE}/team/opp").status_code == 200
    return client


def _section(plan: dict, key: str) -> dict:
    return next(section for section in plan["sections"] if section["key"] == key)


class TestInputs:
    """Play pool and scouting endpoints."""

    def test_set_play_pool(self, client, play_pool):
        plays = [PlayModel.from_play(play).model_dump() for play in play_pool]
        response = client.put(f"{BASE}/team/play-pool", json={"plays": plays})
        assert response.status_code == 200
        assert response.json() == {"team_id": "team", "play_count": len(play_pool)}

    def test_invalid_category_rejected(self, client):
        response = client.put(
            f"{BASE}/team/play-pool",
            json={"plays": [{"id": "1", "category": "kickoff"}]},
        )
        assert response.status_code == 422

    def test_scouting_round_trip(self, client, scouting):
        client.put(f"{BASE}/team/opp/scouting", json=scouting.to_dict())
        response = client.get(f"{BASE}/team/opp/scouting")
        assert response.status_code == 200
        assert response.json()["coverages_pct"] == {"Cover 3": 40.0, "Cover 1": 35.0, "Cover 4": 25.0}


class TestPlans:
    """Opening, reading and deleting plans."""

    def test_get_before_open(self, client):
        response = client.get(f"{BASE}/team/opp")
        assert response.status_code == 404
        assert response.json()["detail"] == "Plan not found. Create one first."

    def test_open_creates_beater_sections(self, loaded):
        plan = loaded.get(f"{BASE}/team/opp").json()
        keys = [section["key"] for section in plan["sections"]]
        assert keys[0] == "opening_script"
        assert "front_nickel_4_2" in keys
        assert "coverage_cover_4" in keys
        assert plan["total_plays"] == 0

    def test_open_is_idempotent(self, loaded, service):
        loaded.post(f"{BASE}/team/opp")
        assert service.open_plan_count == 1

    def test_delete_all(self, loaded):
        loaded.post(f"{BASE}/team/opp/regenerate")
        response = loaded.delete(f"{BASE}/team/opp")
        assert response.status_code == 200
        assert response.json()["total_plays"] == 0

    def test_delete_unknown_plan(self, client):
        assert client.delete(f"{BASE}/team/nobody").status_code == 404

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestRegeneration:
    """Regeneration endpoints."""

    def test_regenerate_section(self, loaded):
        response = loaded.post(f"{BASE}/team/opp/sections/two_point/regenerate")
        assert response.status_code == 200
        body = response.json()
        assert body["result"]["filled"] == 3
        assert body["result"]["notices"] == []
        assert {slot["play_id"] for slot in body["section"]["slots"]} == {"r1", "r3", "p2"}
        assert all(slot["display_number"] is not None for slot in body["section"]["slots"])

    def test_partial_fill_notice(self, loaded):
        body = loaded.post(f"{BASE}/team/opp/sections/screens/regenerate").json()
        assert body["result"]["notices"][0]["kind"] == "partial_fill"

    def test_unknown_section(self, loaded):
        response = loaded.post(f"{BASE}/team/opp/sections/nope/regenerate")
        assert response.status_code == 404

    def test_busy_section(self, loaded, service):
        plan = service._plans[("team", "opp")]
        plan.section("screens").state = SectionState.REGENERATING

        response = loaded.post(f"{BASE}/team/opp/sections/screens/regenerate")

        assert response.status_code == 409

    def test_focus_with_both_fields_rejected(self, loaded):
        response = loaded.post(
            f"{BASE}/team/opp/sections/base_package_1/regenerate",
            json={"base_package_focus": {"base_package_1": {"concept": "Power", "formation": "Trips"}}},
        )
        assert response.status_code == 422

    def test_focus_applied(self, loaded):
        response = loaded.post(
            f"{BASE}/team/opp/sections/base_package_1/regenerate",
            json={"base_package_focus": {"base_package_1": {"concept": "Inside Zone"}}},
        )
        ids = {slot["play_id"] for slot in response.json()["section"]["slots"] if slot["play_id"]}
        assert ids == {"r1", "r2"}

    def test_regenerate_plan(self, loaded):
        response = loaded.post(f"{BASE}/team/opp/regenerate")
        assert response.status_code == 200
        body = response.json()
        assert body["failures"] == {}
        assert _section(body["plan"], "opening_script")["filled"] == 15
        assert _section(body["plan"], "opening_script")["starting_number"] == 1

    def test_numbering(self, loaded):
        loaded.post(f"{BASE}/team/opp/sections/two_point/regenerate")
        body = loaded.get(f"{BASE}/team/opp/numbering").json()
        assert body["starts"]["opening_script"] == 1
        assert sorted(body["numbers"]["two_point"].values()) == [1, 2, 3]


class TestManualEdits:
    """Section and slot edits."""

    def test_add_play(self, loaded):
        response = loaded.post(f"{BASE}/team/opp/sections/screens/plays", json={"play_id": "s2"})
        assert response.status_code == 200
        assert response.json()["slots"][0]["play_id"] == "s2"

    def test_add_unknown_play(self, loaded):
        response = loaded.post(f"{BASE}/team/opp/sections/screens/plays", json={"play_id": "zzz"})
        assert response.status_code == 422

    def test_lock_and_relabel(self, loaded):
        loaded.post(f"{BASE}/team/opp/sections/screens/plays", json={"play_id": "s2"})
        response = loaded.patch(
            f"{BASE}/team/opp/sections/screens/slots/0",
            json={"locked": True, "custom_text": "Tunnel Rt"},
        )
        slot = response.json()["slots"][0]
        assert slot["locked"]
        assert slot["call"] == "Tunnel Rt"

    def test_lock_empty_slot_rejected(self, loaded):
        response = loaded.patch(f"{BASE}/team/opp/sections/screens/slots/1", json={"locked": True})
        assert response.status_code == 422

    def test_locked_slot_survives_regeneration(self, loaded):
        loaded.post(f"{BASE}/team/opp/sections/deep_shots/plays", json={"play_id": "x2", "position": 4})
        loaded.patch(f"{BASE}/team/opp/sections/deep_shots/slots/4", json={"locked": True})

        body = loaded.post(f"{BASE}/team/opp/sections/deep_shots/regenerate").json()

        slot = body["section"]["slots"][4]
        assert slot["play_id"] == "x2"
        assert slot["locked"]

    def test_delete_and_move(self, loaded):
        for play_id in ("s1", "s2", "s3"):
            loaded.post(f"{BASE}/team/opp/sections/screens/plays", json={"play_id": play_id})

        loaded.delete(f"{BASE}/team/opp/sections/screens/slots/0")
        body = loaded.post(
            f"{BASE}/team/opp/sections/screens/move", json={"source": 1, "destination": 0}
        ).json()

        assert [slot["play_id"] for slot in body["slots"]] == ["s3", "s2", None, None, None]

    def test_resize_and_hide(self, loaded):
        response = loaded.patch(
            f"{BASE}/team/opp/sections/screens", json={"capacity": 3, "visible": False}
        )
        body = response.json()
        assert body["capacity"] == 3
        assert not body["visible"]
        assert body["starting_number"] is None

    def test_invalid_capacity(self, loaded):
        response = loaded.patch(f"{BASE}/team/opp/sections/screens", json={"capacity": 0})
        assert response.status_code == 422

    def test_negative_move_rejected(self, loaded):
        response = loaded.post(
            f"{BASE}/team/opp/sections/screens/move", json={"source": -1, "destination": 0}
        )
        assert response.status_code == 422

    def test_edit_busy_section_rejected(self, loaded, service):
        service._plans[("team", "opp")].section("screens").state = SectionState.REGENERATING

        response = loaded.post(f"{BASE}/team/opp/sections/screens/plays", json={"play_id": "s2"})

        assert response.status_code == 409
