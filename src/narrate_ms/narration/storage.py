"""
Object Storage Client (Supabase Storage HTTP API).

Covers the three storage concerns of a narration request:

    exists(path)       - Is the artifact already there? (cache probe)
    resolve_url(path)  - Which URL should the caller download from?
    publish(path, mp3) - Upload with overwrite (x-upsert)

Endpoints used (relative to {url}/storage/v1):
    GET/HEAD object/public/{bucket}/{path}         public read
    GET      object/authenticated/{bucket}/{path}  private read (service key)
    POST     object/sign/{bucket}/{path}           signed URL issuance
    POST     object/{bucket}/{path}                upload

Failure Policy:
    Probing fails open: any transport error or unexpected status reads as
    "missing", which costs one extra synthesis at worst. URL resolution
    never raises either; if signing fails the public-style URL is returned.
    Only publish() raises, because a failed upload leaves the caller with
    no file.
"""
from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import quote

import httpx

from narrate_ms.core.config import StorageConfig
from narrate_ms.core.errors import UpstreamError
from narrate_ms.core.logging import debug, get_logger, verbose, warn

_LOG = get_logger("narrate-ms.storage")

# Two bytes is enough to prove the object is readable
PROBE_RANGE = "bytes=0-1"
_PROBE_OK = (200, 206)
# Statuses that definitely mean "no such object" on a HEAD
_HEAD_MISSING = (400, 404)

AUDIO_CONTENT_TYPE = "audio/mpeg"


class StorageClient:
    """
    Thin async client over the object store.

    Args:
        config: Storage configuration (base URL, key, bucket, visibility).
        client: Shared httpx.AsyncClient. Owned by the caller.
    """

    def __init__(self, config: StorageConfig, client: httpx.AsyncClient):
        self._config = config
        self._client = client
        self._base = f"{config.url}/storage/v1"

    @property
    def config(self) -> StorageConfig:
        return self._config

    def _object_url(self, kind: Optional[str], object_path: str) -> str:
        path = quote(object_path, safe="/")
        if kind:
            return f"{self._base}/object/{kind}/{self._config.bucket}/{path}"
        return f"{self._base}/object/{self._config.bucket}/{path}"

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.service_key}",
            "apikey": self._config.service_key,
        }

    def public_url(self, object_path: str) -> str:
        """Deterministic public URL. No network call."""
        return self._object_url("public", object_path)

    # =========================================================================
    # Existence probing
    # =========================================================================

    async def exists(self, object_path: str) -> bool:
        """
        Check whether an artifact exists. Never raises.

        Public buckets get a HEAD first and a ranged GET when the HEAD is
        inconclusive; private buckets get an authenticated ranged GET.
        """
        if self._config.is_private:
            found = await self._range_probe(
                self._object_url("authenticated", object_path),
                self._auth_headers(),
            )
        else:
            found = await self._exists_public(object_path)
        debug(_LOG, "probe", path=object_path, found=found,
              mode=self._config.visibility.value)
        return found

    async def _exists_public(self, object_path: str) -> bool:
        url = self.public_url(object_path)
        try:
            head = await self._client.head(url, timeout=self._config.http_timeout_s)
        except httpx.HTTPError as e:
            verbose(_LOG, "probe_head_failed", path=object_path, error=type(e).__name__)
        else:
            if head.is_success:
                return True
            if head.status_code in _HEAD_MISSING:
                return False
            verbose(_LOG, "probe_head_inconclusive", path=object_path, status=head.status_code)
        return await self._range_probe(url, {})

    async def _range_probe(self, url: str, headers: Dict[str, str]) -> bool:
        try:
            async with self._client.stream(
                "GET",
                url,
                headers={**headers, "Range": PROBE_RANGE},
                timeout=self._config.http_timeout_s,
            ) as response:
                return response.status_code in _PROBE_OK
        except httpx.HTTPError as e:
            warn(_LOG, "probe_failed", error=type(e).__name__, detail=str(e))
            return False

    # =========================================================================
    # Access URL resolution
    # =========================================================================

    async def resolve_url(self, object_path: str) -> str:
        """
        URL the caller should use to fetch the artifact. Never raises.

        Private buckets get a signed URL valid for signed_url_ttl_s; if
        signing fails for any reason the public-style URL is returned.
        """
        if not self._config.is_private:
            return self.public_url(object_path)

        signed = await self._signed_url(object_path)
        if signed is None:
            return self.public_url(object_path)
        return signed

    async def _signed_url(self, object_path: str) -> Optional[str]:
        try:
            response = await self._client.post(
                self._object_url("sign", object_path),
                headers=self._auth_headers(),
                json={"expiresIn": self._config.signed_url_ttl_s},
                timeout=self._config.http_timeout_s,
            )
        except httpx.HTTPError as e:
            warn(_LOG, "sign_failed", path=object_path, error=type(e).__name__)
            return None

        if not response.is_success:
            warn(_LOG, "sign_failed", path=object_path, status=response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            warn(_LOG, "sign_failed", path=object_path, reason="invalid_json")
            return None

        signed = None
        if isinstance(data, dict):
            signed = data.get("signedURL") or data.get("signedUrl")
        if not isinstance(signed, str) or not signed:
            warn(_LOG, "sign_failed", path=object_path, reason="missing_signed_url")
            return None

        if signed.startswith(("http://", "https://")):
            return signed
        return f"{self._base}/{signed.lstrip('/')}"

    # =========================================================================
    # Upload
    # =========================================================================

    async def publish(self, object_path: str, data: bytes, content_type: str = AUDIO_CONTENT_TYPE) -> None:
        """
        Upload bytes to object_path, overwriting any existing object.

        Raises:
            UpstreamError: Non-success status (passed through) or a
                transport failure (reported as 502).
        """
        headers = {
            **self._auth_headers(),
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        try:
            response = await self._client.post(
                self._object_url(None, object_path),
                headers=headers,
                content=data,
                timeout=self._config.http_timeout_s,
            )
        except httpx.HTTPError as e:
            raise UpstreamError("Storage upload failed", 502, detail=str(e)) from e

        if not response.is_success:
            raise UpstreamError("Storage upload failed", response.status_code, detail=response.text)

        verbose(_LOG, "published", path=object_path, bytes=len(data))
