"""
Tests for API layer.

Tests:
- API service methods
- HTTP endpoints and error responses
- Session lifecycle via API
- OpenAPI schema generation
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import CreateSessionRequest, ErrorCode, LoopStatus, SessionStatus
from ..api.service import APIService, CommandRejectedError, SessionNotFoundError, StageNotFoundError
from ..session import StageLockedError
from .test_content import minimal_bundle


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_list_stages(self, service):
        response = service.list_stages()

        by_id = {s.stage_id: s for s in response.stages}
        assert list(by_id) == ["stage_1", "stage_2", "stage_3", "score_attack"]
        assert by_id["stage_1"].unlocked
        assert not by_id["stage_2"].unlocked
        assert by_id["score_attack"].is_score_attack
        assert by_id["score_attack"].target_score is None

    def test_create_session(self, service):
        response = service.create_session(CreateSessionRequest(stage_id="stage_1", seed=5))

        assert response.session_id
        assert response.stage_name == "First Post"
        assert response.status == SessionStatus.ACTIVE
        assert response.seed == 5

    def test_unknown_stage(self, service):
        with pytest.raises(StageNotFoundError):
            service.create_session(CreateSessionRequest(stage_id="stage_99"))

    def test_locked_stage(self, service):
        with pytest.raises(StageLockedError):
            service.create_session(CreateSessionRequest(stage_id="stage_3"))

    def test_state_starts_with_cut_in(self, service):
        session = service.create_session(CreateSessionRequest(stage_id="stage_1", seed=5))

        state = service.get_state(session.session_id)

        assert state.loop_state == LoopStatus.WAITING_ACKNOWLEDGMENT
        assert state.pending_acknowledgment.preset_id == "welcome"
        assert state.resources.mental == state.resources.max_mental
        assert state.hand == []

    def test_acknowledge_then_draft(self, service):
        session = service.create_session(CreateSessionRequest(stage_id="stage_1", seed=5))
        ack_id = service.get_state(session.session_id).pending_acknowledgment.ack_id

        response = service.acknowledge(session.session_id, ack_id)

        assert response.success
        assert response.state.loop_state == LoopStatus.WAITING_DRAFT
        draft = response.state.pending_draft
        assert len(draft.options) == 3

        picked = service.select_draft(session.session_id, draft.options[0].card_id)
        assert picked.state.loop_state == LoopStatus.PLAYER_ACTION
        assert picked.state.playable_card_ids

    def test_rejection_raises(self, service):
        session = service.create_session(CreateSessionRequest(stage_id="stage_1", seed=5))
        with pytest.raises(CommandRejectedError) as exc:
            service.play_card(session.session_id, "post_selfie")
        assert exc.value.reason == "acknowledgment_pending"

    def test_missing_session(self, service):
        with pytest.raises(SessionNotFoundError):
            service.get_state("missing")

    def test_drain_events(self, service):
        session = service.create_session(CreateSessionRequest(stage_id="stage_1", seed=5))

        first = service.drain_events(session.session_id)
        second = service.drain_events(session.session_id)

        assert first.count > 0
        assert "acknowledgment_requested" in [e.type for e in first.events]
        assert second.count == 0

    def test_end_session(self, service):
        session = service.create_session(CreateSessionRequest(stage_id="stage_1"))
        assert service.end_session(session.session_id)
        assert not service.end_session(session.session_id)
        assert service.list_sessions() == []

    def test_validate_content(self, service):
        response = service.validate_content(minimal_bundle())
        assert response.valid
        assert response.card_count == 3
        assert response.stage_count == 2


class TestHTTP:
    @pytest.fixture
    def client(self):
        return TestClient(create_app(APIService()))

    def start(self, client, stage_id="stage_1") -> str:
        response = client.post("/api/v1/sessions", json={"stage_id": stage_id, "seed": 5})
        assert response.status_code == 200
        return response.json()["session_id"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_stages(self, client):
        response = client.get("/api/v1/stages")
        assert response.status_code == 200
        assert len(response.json()["stages"]) == 4

    def test_locked_stage_is_403(self, client):
        response = client.post("/api/v1/sessions", json={"stage_id": "stage_2"})

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == ErrorCode.STAGE_LOCKED.value
        assert body["details"]["missing"] == ["stage_1"]

    def test_unknown_stage_is_404(self, client):
        response = client.post("/api/v1/sessions", json={"stage_id": "nope"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "STAGE_NOT_FOUND"

    def test_unknown_session_is_404(self, client):
        response = client.get("/api/v1/sessions/missing/state")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_rejected_command_is_409(self, client):
        session_id = self.start(client)

        response = client.post(f"/api/v1/sessions/{session_id}/play", json={"card_id": "post_selfie"})

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "ACTION_REJECTED"
        assert body["details"]["reason"] == "acknowledgment_pending"

    def test_play_through_first_turn(self, client):
        session_id = self.start(client)
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()

        ack_id = state["pending_acknowledgment"]["ack_id"]
        state = client.post(
            f"/api/v1/sessions/{session_id}/acknowledge", json={"ack_id": ack_id}
        ).json()["state"]

        option = state["pending_draft"]["options"][0]["card_id"]
        state = client.post(
            f"/api/v1/sessions/{session_id}/draft", json={"card_id": option}
        ).json()["state"]
        assert state["loop_state"] == "player_action"

        card_id = state["playable_card_ids"][0]
        response = client.post(f"/api/v1/sessions/{session_id}/play", json={"card_id": card_id})
        assert response.status_code == 200
        assert response.json()["card_id"] == card_id

        response = client.post(f"/api/v1/sessions/{session_id}/end-action")
        assert response.status_code == 200
        assert response.json()["state"]["turn"] == 2

    def test_events(self, client):
        session_id = self.start(client)
        response = client.get(f"/api/v1/sessions/{session_id}/events")
        assert response.status_code == 200
        assert response.json()["count"] > 0

    def test_end_session(self, client):
        session_id = self.start(client)

        response = client.delete(f"/api/v1/sessions/{session_id}")
        assert response.json()["success"]
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404

    def test_progress(self, client):
        response = client.get("/api/v1/progress")
        assert response.json()["cleared_stage_ids"] == []
        assert client.delete("/api/v1/progress").status_code == 200

    def test_validate_content(self, client):
        response = client.post("/api/v1/content/validate", json=minimal_bundle())
        assert response.status_code == 200
        assert response.json()["valid"]

    def test_invalid_content_is_422(self, client):
        data = minimal_bundle()
        data["stages"][0]["initial_deck"].append("ghost")

        response = client.post("/api/v1/content/validate", json=data)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "INVALID_CONTENT"
        assert any("ghost" in e for e in body["details"]["errors"])


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_schema_generates(self):
        from ..api.app import app
        from fastapi.openapi.utils import get_openapi

        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )

        assert "paths" in schema
        assert "components" in schema

    def test_response_models_in_schema(self):
        from ..api.app import app
        from fastapi.openapi.utils import get_openapi

        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )
        schemas = schema["components"]["schemas"]

        for name in [
            "SessionResponse",
            "GameStateResponse",
            "CommandResponse",
            "StageListResponse",
            "ContentValidationResponse",
            "ErrorResponse",
        ]:
            assert name in schemas, f"Missing schema: {name}"

    def test_command_endpoints_document_rejections(self):
        from ..api.app import app
        from fastapi.openapi.utils import get_openapi

        schema = get_openapi(title=app.title, version=app.version, routes=app.routes)
        paths = schema["paths"]

        for suffix in ["play", "end-action", "draft", "acknowledge", "draw-complete"]:
            post = paths[f"/api/v1/sessions/{{session_id}}/{suffix}"]["post"]
            assert "409" in post["responses"]
