from __future__ import annotations

from fastapi.testclient import TestClient
import pytest
import structlog

from contentdeck.api.context import build_context
from contentdeck.api.main import create_app
from contentdeck.captions.providers.base import CaptionProviderError, CaptionRequest
from contentdeck.core.config import get_settings


class ScriptedProvider:
    provider_name = "scripted"

    def __init__(self) -> None:
        self.fail_with: str | None = None

    def generate_caption(self, request: CaptionRequest) -> str:
        if self.fail_with is not None:
            raise CaptionProviderError(self.fail_with)
        return f"Caption about {request.prompt}"


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def client(provider) -> TestClient:
    context = build_context(get_settings(), provider=provider)
    return TestClient(create_app(context))


def _register(client: TestClient, username: str = "creator") -> dict[str, str]:
    response = client.post(
        "/users",
        json={"username": username, "password": "pw", "name": "Creator", "email": f"{username}@example.com"},
    )
    assert response.status_code == 201
    assert "password" not in response.json()
    return {"X-User-Id": str(response.json()["id"])}


def _upload(client: TestClient, headers: dict[str, str], title: str = "clip", payload: bytes = b"video") -> dict:
    response = client.post(
        "/videos",
        headers=headers,
        data={"title": title},
        files={"file": ("clip.mp4", payload, "video/mp4")},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_requests_without_known_user_are_unauthorized(client) -> None:
    assert client.get("/users/me").status_code == 401
    assert client.get("/videos", headers={"X-User-Id": "42"}).status_code == 401
    assert client.get("/videos", headers={"X-User-Id": "abc"}).status_code == 401


def test_register_then_profile_and_subscription(client) -> None:
    headers = _register(client)

    me = client.get("/users/me", headers=headers)
    assert me.json()["username"] == "creator"

    patched = client.patch("/users/me", headers=headers, json={"name": "Renamed"})
    assert patched.json()["name"] == "Renamed"

    subscription = client.get("/subscription", headers=headers).json()
    assert subscription["plan"] == "trial"
    assert subscription["storage"] == 1024

    changed = client.put("/subscription/plan", headers=headers, json={"plan": "pro"})
    assert changed.json()["storage"] == 2048


def test_duplicate_registration_renders_domain_error(client) -> None:
    _register(client)
    response = client.post(
        "/users",
        json={"username": "creator", "password": "pw", "name": "Other", "email": "o@example.com"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
    assert response.json()["message"] == "Username already exists"


def test_facebook_settings_defaults_and_upsert(client) -> None:
    headers = _register(client)

    assert client.get("/facebook-settings", headers=headers).json()["upload_frequency"] == 60
    saved = client.put("/facebook-settings", headers=headers, json={"page_id": "123", "upload_frequency": 30})
    assert saved.status_code == 200
    assert saved.json()["page_id"] == "123"
    assert client.put("/facebook-settings", headers=headers, json={"upload_frequency": 0}).status_code == 422


def test_upload_schedule_and_delete_flow(client) -> None:
    headers = _register(client)
    first = _upload(client, headers, "first", b"x" * 2048)
    second = _upload(client, headers, "second")

    usage = client.get("/usage-metrics", headers=headers).json()
    assert usage["storage_used"] == 2048 + 5

    scheduled = client.post(
        "/schedule",
        headers=headers,
        json={"video_id": first["id"], "scheduled_for": "2030-01-01T09:00:10Z"},
    )
    assert scheduled.status_code == 200
    assert scheduled.json()["status"] == "scheduled"

    conflict = client.post(
        "/schedule",
        headers=headers,
        json={"video_id": second["id"], "scheduled_for": "2030-01-01T09:00:45Z"},
    )
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["conflicting_video_id"] == first["id"]

    listed = client.get("/schedule", headers=headers).json()["items"]
    assert [item["video_id"] for item in listed] == [first["id"]]

    unscheduled = client.delete(f"/schedule/{first['id']}", headers=headers)
    assert unscheduled.json()["status"] == "pending"
    assert unscheduled.json()["scheduled_for"] is None

    assert client.delete(f"/videos/{first['id']}", headers=headers).status_code == 204
    assert client.delete(f"/videos/{first['id']}", headers=headers).status_code == 404
    assert client.get("/usage-metrics", headers=headers).json()["storage_used"] == 5


def test_upload_rejects_non_mp4(client) -> None:
    headers = _register(client)
    response = client.post(
        "/videos",
        headers=headers,
        data={"title": "clip"},
        files={"file": ("clip.mov", b"data", "video/quicktime")},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_other_users_video_is_forbidden(client) -> None:
    owner = _register(client, "owner")
    intruder = _register(client, "intruder")
    video = _upload(client, owner)

    response = client.delete(f"/videos/{video['id']}", headers=intruder)

    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


def test_schedule_next_free_slot(client) -> None:
    headers = _register(client)
    video = _upload(client, headers)

    response = client.post("/schedule/next", headers=headers, json={"video_id": video["id"]})

    assert response.status_code == 200
    assert response.json()["status"] == "scheduled"
    assert response.json()["scheduled_for"].endswith(":00:00Z") or response.json()["scheduled_for"].endswith("+00:00")


def test_captions_crud_and_generation(client, provider) -> None:
    headers = _register(client)

    saved = client.post("/captions", headers=headers, json={"content": "Hello"})
    assert saved.status_code == 201
    assert [item["content"] for item in client.get("/captions", headers=headers).json()["items"]] == ["Hello"]
    assert client.delete(f"/captions/{saved.json()['id']}", headers=headers).status_code == 204

    generated = client.post("/ai/generate-caption", headers=headers, json={"prompt": "launch", "length": "short"})
    assert generated.json() == {"caption": "Caption about launch"}
    assert client.get("/usage-metrics", headers=headers).json()["tasks_used"] == 1

    provider.fail_with = "timeout"
    failed = client.post("/ai/generate-caption", headers=headers, json={"prompt": "launch"})
    assert failed.status_code == 502
    assert failed.json()["detail"] == {"reason": "timeout"}
    assert client.get("/usage-metrics", headers=headers).json()["tasks_used"] == 1


def test_generation_over_task_quota_returns_402(client) -> None:
    headers = _register(client)
    context = client.app.state.context
    user_id = int(headers["X-User-Id"])
    metrics = context.store.usage_metrics.find_by_user(user_id)
    context.store.usage_metrics.update(metrics.id, tasks_used=100)

    response = client.post("/ai/generate-caption", headers=headers, json={"prompt": "launch"})

    assert response.status_code == 402
    assert response.json()["error"] == "quota_exceeded"
    assert response.json()["detail"]["resource"] == "tasks"


def test_usage_metrics_include_utilization(client) -> None:
    headers = _register(client)

    usage = client.get("/usage-metrics", headers=headers).json()

    assert usage["utilization"] == {"storage_pct": 0.0, "tasks_pct": 0.0}


def test_request_context_carries_request_and_user_ids(client) -> None:
    headers = _register(client)
    seen: dict = {}

    @client.app.get("/_context")
    def read_logging_context() -> dict:
        seen.update(structlog.contextvars.get_contextvars())
        return {}

    response = client.get("/_context", headers={**headers, "X-Request-Id": "req-42"})

    assert response.headers["x-request-id"] == "req-42"
    assert seen == {"request_id": "req-42", "user_id": int(headers["X-User-Id"])}
