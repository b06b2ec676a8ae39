"""
HTTP contract tests for /narrate.

The real application is built with create_app(); only the service
dependency is overridden so it talks to FakeBackend.

Tests cover:
- GET hint, OPTIONS preflight, 405 for other methods
- POST 200 (miss, then hit), 202 processing, 400, 500, upstream passthrough
- CORS, X-Request-Id and X-Cache headers on every response
- /health and /metrics
"""
import pytest
from fastapi.testclient import TestClient

from narrate_ms.api.dependencies import get_narrate_service
from narrate_ms.core.config import NarrateServiceConfig, Settings
from narrate_ms.main import create_app

BODY = {"title": "Card A", "campaign": "Camp1", "text": "Hello world"}


@pytest.fixture
def client_for(make_config, make_service):
    def _build(backend, config=None):
        app = create_app()
        service = make_service(backend, config or make_config())
        app.dependency_overrides[get_narrate_service] = lambda: service
        return TestClient(app)
    return _build


@pytest.fixture
def client(client_for, backend):
    return client_for(backend)


def _assert_cors(r):
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.headers["access-control-allow-methods"] == "POST, GET, OPTIONS"
    assert "access-control-allow-headers" in r.headers


class TestNonPostMethods:
    def test_get_hint(self, client):
        r = client.get("/narrate")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "hint": "POST {title,campaign,text,voiceId?} to get an MP3 URL."}
        _assert_cors(r)

    def test_options_default_headers(self, client):
        r = client.options("/narrate")
        assert r.status_code == 200
        assert r.content == b""
        assert r.headers["access-control-allow-headers"] == "Content-Type"
        _assert_cors(r)

    def test_options_echoes_requested_headers(self, client):
        r = client.options(
            "/narrate",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, x-custom",
            },
        )
        assert r.status_code == 200
        assert r.headers["access-control-allow-headers"] == "content-type, x-custom"

    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "TRACE"])
    def test_method_not_allowed(self, client, method):
        r = client.request(method, "/narrate")
        assert r.status_code == 405
        assert r.headers["allow"] == "POST, GET, OPTIONS"
        assert r.json()["ok"] is False
        _assert_cors(r)

    def test_head_not_allowed(self, client):
        r = client.head("/narrate")
        assert r.status_code == 405
        assert r.headers["allow"] == "POST, GET, OPTIONS"
        _assert_cors(r)

    def test_other_paths_keep_default_errors(self, client):
        r = client.get("/nowhere")
        assert r.status_code == 404
        assert "access-control-allow-origin" not in r.headers

    def test_invalid_settings_500(self, backend):
        app = create_app()

        def broken_service():
            Settings(raw={"narration": {"id_length": "twelve"}}).get_service_config()

        app.dependency_overrides[get_narrate_service] = broken_service
        r = TestClient(app).post("/narrate", json=BODY)
        assert r.status_code == 500
        assert r.json()["code"] == "CONFIG_MISSING"
        assert "id_length" in r.json()["detail"]
        _assert_cors(r)


class TestPostReady:
    def test_miss_then_hit(self, client, backend, narration_id):
        nid = narration_id("Hello world")

        r1 = client.post("/narrate", json=BODY)
        assert r1.status_code == 200
        body = r1.json()
        assert body == {
            "ok": True,
            "id": nid,
            "url": f"https://proj.supabase.co/storage/v1/object/public/audio/cards/{nid}.mp3",
            "filename": f"Camp1__Card_A--{nid}.mp3",
            "bytes": len(backend.tts_audio),
        }
        assert r1.headers["x-cache"] == "miss"
        assert r1.headers["x-request-id"]
        _assert_cors(r1)

        r2 = client.post("/narrate", json={**BODY, "title": "Renamed"})
        assert r2.status_code == 200
        assert r2.headers["x-cache"] == "hit"
        assert "bytes" not in r2.json()
        assert r2.json()["url"] == body["url"]
        assert r2.json()["filename"] == f"Camp1__Renamed--{nid}.mp3"
        assert len(backend.tts_calls) == 1

    def test_voice_id_alias(self, client, backend, narration_id):
        r = client.post("/narrate", json={**BODY, "voiceId": "voiceB"})
        assert r.status_code == 200
        assert r.json()["id"] == narration_id("Hello world", voice="voiceB")
        assert backend.tts_calls[0]["path"] == "/v1/text-to-speech/voiceB"

    def test_request_ids_differ(self, client):
        a = client.post("/narrate", json=BODY).headers["x-request-id"]
        b = client.post("/narrate", json=BODY).headers["x-request-id"]
        assert a != b


class TestPostProcessing:
    def test_timeout_returns_202_then_200(self, client_for, backend, make_config, narration_id):
        backend.tts_delay = 1.0
        client = client_for(backend, make_config(timeout_ms=50))
        nid = narration_id("Hello world")

        r = client.post("/narrate", json=BODY)
        assert r.status_code == 202
        assert r.json()["status"] == "processing"
        assert r.json()["id"] == nid
        assert r.json()["ok"] is False
        assert "x-cache" not in r.headers
        _assert_cors(r)

        backend.objects[f"audio/cards/{nid}.mp3"] = b"ID3late"
        r = client.post("/narrate", json=BODY)
        assert r.status_code == 200
        assert r.headers["x-cache"] == "hit"


class TestPostErrors:
    @pytest.mark.parametrize("missing", ["title", "campaign", "text"])
    def test_missing_field_400(self, client, backend, missing):
        body = {k: v for k, v in BODY.items() if k != missing}
        r = client.post("/narrate", json=body)
        assert r.status_code == 400
        assert r.json()["ok"] is False
        assert r.json()["code"] == "INVALID_INPUT"
        assert backend.requests == []
        _assert_cors(r)

    def test_blank_text_400(self, client, backend):
        r = client.post("/narrate", json={**BODY, "text": "   "})
        assert r.status_code == 400
        assert backend.requests == []

    def test_malformed_json_400(self, client, backend):
        r = client.post("/narrate", content=b"{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_INPUT"
        _assert_cors(r)
        assert backend.requests == []

    def test_wrong_type_400(self, client):
        r = client.post("/narrate", json={**BODY, "text": ["a", "b"]})
        assert r.status_code == 400

    def test_missing_config_500(self, client_for, backend):
        client = client_for(backend, NarrateServiceConfig())
        r = client.post("/narrate", json=BODY)
        assert r.status_code == 500
        assert r.json()["code"] == "CONFIG_MISSING"
        assert "SUPABASE_URL" in r.json()["detail"]
        _assert_cors(r)

    def test_upstream_status_passthrough(self, client, backend):
        backend.tts_status = 401
        r = client.post("/narrate", json=BODY)
        assert r.status_code == 401
        assert r.json()["code"] == "UPSTREAM_FAILED"
        assert r.json()["detail"] == "quota exceeded"
        assert r.headers["x-request-id"]

    def test_publish_failure_passthrough(self, client, backend):
        backend.upload_status = 500
        r = client.post("/narrate", json=BODY)
        assert r.status_code == 500
        assert r.json()["code"] == "UPSTREAM_FAILED"


class TestOperationalEndpoints:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True
        assert r.json()["bucket"] == "audio"

    def test_health_reports_missing(self, client_for, backend):
        client = client_for(backend, NarrateServiceConfig())
        r = client.get("/health")
        assert r.json()["ok"] is False
        assert "ELEVEN_VOICE_ID" in r.json()["missing"]

    def test_metrics(self, client):
        client.post("/narrate", json=BODY)
        r = client.get("/metrics")
        assert r.status_code == 200
        assert "narrate_requests_total" in r.text
        assert "narrate_cache_total" in r.text
