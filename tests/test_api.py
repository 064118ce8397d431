"""Tests for the landing HTTP API."""

import base64
import io
import zipfile

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from landing_forge.api.app import create_app
from landing_forge.containers import AppContainer
from landing_forge.domain.sessions import GenerationState
from tests.conftest import PNG_BYTES, FakeAnalyzer

OWNER = {"X-Owner-Id": "42"}


def _start(client: TestClient, **body: object) -> dict[str, object]:
    response = client.post("/landings", json={"prompt": "wheel landing", **body}, headers=OWNER)
    assert response.status_code == 202
    return response.json()


def test_health_reports_sessions(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "sessions": 0, "active_sessions": 0}


def test_create_landing_runs_pipeline(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    created = _start(client)
    status_response = client.get(f"/landings/{created['session_id']}", headers=OWNER)

    assert status_response.status_code == 200
    assert status_response.json()["state"] == GenerationState.COMPLETE.value
    assert status_response.json()["progress"] == 100


def test_create_landing_requires_owner(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/landings", json={"prompt": "wheel"})
    invalid = client.post("/landings", json={"prompt": "wheel"}, headers={"X-Owner-Id": "abc"})

    assert missing.status_code == 401
    assert invalid.status_code == 401


def test_create_landing_rejects_bad_screenshot(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/landings",
        json={"prompt": "wheel", "screenshot_base64": "not base64!"},
        headers=OWNER,
    )

    assert response.status_code == 422


def test_create_landing_passes_screenshot(
    container: AppContainer, analyzer: FakeAnalyzer
) -> None:
    client = TestClient(create_app(container))
    encoded = base64.b64encode(PNG_BYTES).decode()

    _start(client, screenshot_base64=f"data:image/png;base64,{encoded}")

    assert analyzer.calls == [("wheel landing", PNG_BYTES)]


def test_failed_generation_is_reported(
    container: AppContainer, analyzer: FakeAnalyzer
) -> None:
    analyzer.error = RuntimeError("model overloaded")
    client = TestClient(create_app(container))

    created = _start(client)
    response = client.get(f"/landings/{created['session_id']}", headers=OWNER)

    assert response.json()["state"] == GenerationState.ERROR.value
    assert response.json()["error"] == "model overloaded"


def test_session_limit_returns_429(container: AppContainer) -> None:
    registry = container.session_registry
    registry.max_sessions_per_owner = 1
    registry.create(42)
    client = TestClient(create_app(container))

    response = client.post("/landings", json={"prompt": "wheel"}, headers=OWNER)

    assert response.status_code == 429


def test_status_hidden_from_other_owners(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    created = _start(client)

    response = client.get(
        f"/landings/{created['session_id']}", headers={"X-Owner-Id": "43"}
    )

    assert response.status_code == 404


def test_list_preview_and_download(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _start(client)["session_id"]

    listing = client.get("/landings", headers=OWNER)
    preview = client.get(f"/landings/{session_id}/preview", headers=OWNER)
    download = client.get(f"/landings/{session_id}/download", headers=OWNER)

    assert listing.json()["landings"][0]["sessionId"] == session_id
    assert "assets/wheelFrame.png" in preview.text
    assert download.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(download.content)) as archive:
        assert "index.html" in archive.namelist()


def test_download_unknown_landing_returns_404(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/landings/unknown-id/download", headers=OWNER)

    assert response.status_code == 404


def test_delete_landing(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _start(client)["session_id"]

    deleted = client.delete(f"/landings/{session_id}", headers=OWNER)
    again = client.delete(f"/landings/{session_id}", headers=OWNER)

    assert deleted.status_code == 200
    assert again.status_code == 404
    assert container.session_registry.get(session_id) is None


def test_delete_during_assembly_returns_409(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _start(client)["session_id"]

    with container.assembler.locks.hold(f"42:{session_id}"):
        response = client.delete(f"/landings/{session_id}", headers=OWNER)

    assert response.status_code == 409


def test_events_stream_sends_snapshot_for_finished_session(
    container: AppContainer,
) -> None:
    client = TestClient(create_app(container))
    session_id = _start(client)["session_id"]

    with client.websocket_connect(
        f"/landings/{session_id}/events", headers=OWNER
    ) as websocket:
        snapshot = websocket.receive_json()

    assert snapshot["session_id"] == session_id
    assert snapshot["state"] == GenerationState.COMPLETE.value


def test_events_stream_rejects_other_owner(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _start(client)["session_id"]

    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(
            f"/landings/{session_id}/events", headers={"X-Owner-Id": "43"}
        ) as websocket:
            websocket.receive_json()

    assert excinfo.value.code == 1008
