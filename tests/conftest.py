"""
Shared fixtures: an in-memory fake of the TTS provider and the storage API.

FakeBackend answers every outbound request of NarrateService through
httpx.MockTransport, so the real orchestrator, clients and URL building
run end to end without network access.
"""
import asyncio
import hashlib
import json

import httpx
import pytest

from narrate_ms.core.config import NarrateServiceConfig, Settings
from narrate_ms.services.narrate_service import NarrateService

STORAGE_URL = "https://proj.supabase.co"
TTS_URL = "https://tts.test"
SERVICE_KEY = "svc-key"
VOICE = "voiceA"


def build_config(visibility: str = "public", timeout_ms: int = 2000, **sections) -> NarrateServiceConfig:
    raw = {
        "synthesis": {
            "api_key": "tts-key",
            "voice_id": VOICE,
            "base_url": TTS_URL,
            "timeout_ms": timeout_ms,
        },
        "storage": {
            "url": STORAGE_URL,
            "service_key": SERVICE_KEY,
            "bucket": "audio",
            "visibility": visibility,
        },
        "logging": {"level": 1},
    }
    for name, values in sections.items():
        raw.setdefault(name, {}).update(values)
    return Settings(raw=raw).get_service_config()


class FakeBackend:
    """Minimal stand-in for the TTS provider plus Supabase Storage."""

    def __init__(self, public: bool = True):
        self.public = public
        self.objects = {}            # "bucket/path" -> bytes
        self.requests = []
        self.tts_calls = []
        self.uploads = []
        self.sign_calls = []

        self.tts_delay = 0.0
        self.tts_status = 200
        self.tts_audio = b"ID3" + b"\x00" * 64
        self.upload_status = 200
        self.sign_status = 200
        self.sign_body = None        # overrides the sign response JSON
        self.head_status = None      # forces a HEAD status
        self.head_error = False      # HEAD raises a transport error
        self.storage_down = False    # every storage call raises

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "tts.test":
            return await self._tts(request)
        if self.storage_down:
            raise httpx.ConnectError("storage unreachable", request=request)
        return self._storage(request)

    async def _tts(self, request: httpx.Request) -> httpx.Response:
        self.tts_calls.append({
            "path": request.url.path,
            "params": dict(request.url.params),
            "headers": dict(request.headers),
            "body": json.loads(request.content),
        })
        if self.tts_delay:
            await asyncio.sleep(self.tts_delay)
        if self.tts_status != 200:
            return httpx.Response(self.tts_status, text="quota exceeded")
        return httpx.Response(200, content=self.tts_audio, headers={"content-type": "audio/mpeg"})

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("authorization") == f"Bearer {SERVICE_KEY}"

    def _storage(self, request: httpx.Request) -> httpx.Response:
        prefix = "/storage/v1/object/"
        rest = request.url.path[len(prefix):]

        if rest.startswith("public/"):
            key = rest[len("public/"):]
            if request.method == "HEAD":
                if self.head_error:
                    raise httpx.ConnectError("head refused", request=request)
                if self.head_status is not None:
                    return httpx.Response(self.head_status)
            if not self.public:
                return httpx.Response(400, json={"error": "not public"})
            if key not in self.objects:
                return httpx.Response(404)
            if request.method == "HEAD":
                return httpx.Response(200)
            return httpx.Response(206, content=self.objects[key][:2])

        if rest.startswith("authenticated/"):
            key = rest[len("authenticated/"):]
            if not self._authorized(request):
                return httpx.Response(401)
            if key not in self.objects:
                return httpx.Response(404)
            return httpx.Response(206, content=self.objects[key][:2])

        if rest.startswith("sign/"):
            key = rest[len("sign/"):]
            self.sign_calls.append({"key": key, "body": json.loads(request.content)})
            if self.sign_status != 200:
                return httpx.Response(self.sign_status, text="sign failed")
            if self.sign_body is not None:
                return httpx.Response(200, json=self.sign_body)
            return httpx.Response(200, json={"signedURL": f"/object/sign/{key}?token=tok"})

        if request.method == "POST":
            self.uploads.append({"key": rest, "headers": dict(request.headers), "size": len(request.content)})
            if self.upload_status != 200:
                return httpx.Response(self.upload_status, text="bucket not found")
            self.objects[rest] = request.content
            return httpx.Response(200, json={"Key": rest})

        return httpx.Response(405)


def expected_id(text: str, voice: str = VOICE) -> str:
    """Identifier computed independently of narrate_ms."""
    return hashlib.sha256(f"{voice}::{text}".encode("utf-8")).hexdigest()[:12]


def build_service(backend: FakeBackend, config: NarrateServiceConfig) -> NarrateService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
    return NarrateService(config, client=client)


@pytest.fixture
def make_config():
    return build_config


@pytest.fixture
def make_service():
    return build_service


@pytest.fixture
def narration_id():
    return expected_id


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def private_backend():
    return FakeBackend(public=False)


@pytest.fixture
def service(backend):
    return build_service(backend, build_config())


@pytest.fixture
def private_service(private_backend):
    return build_service(private_backend, build_config(visibility="private"))
