"""
Text-to-Speech Client (ElevenLabs HTTP API).

One POST per narration:

    POST {base_url}/v1/text-to-speech/{voice_id}?output_format=mp3_44100_128
    xi-api-key: <key>
    {"text": ..., "model_id": ..., "voice_settings": {...}}

The whole call runs under asyncio.wait_for() with the configured deadline
(25s by default). Hitting the deadline raises SynthesisPending rather than
an error: the caller can resubmit the identical payload, and because the
artifact key is content-derived the retry may simply find the file.

Note that the upstream request is abandoned, not cancelled server-side;
the TTS provider may still bill for it.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict

import httpx

from narrate_ms.core.config import SynthesisConfig
from narrate_ms.core.errors import SynthesisPending, UpstreamError
from narrate_ms.core.logging import debug, get_logger, warn

_LOG = get_logger("narrate-ms.synthesis")


class SynthesisClient:
    """
    Async client for the external TTS service.

    Args:
        config: Synthesis configuration (key, model, timeout).
        client: Shared httpx.AsyncClient. Owned by the caller.
    """

    def __init__(self, config: SynthesisConfig, client: httpx.AsyncClient):
        self._config = config
        self._client = client

    @property
    def config(self) -> SynthesisConfig:
        return self._config

    def _payload(self, text: str) -> Dict[str, Any]:
        return {
            "text": text,
            "model_id": self._config.model_id,
            "voice_settings": {
                "stability": self._config.stability,
                "similarity_boost": self._config.similarity_boost,
            },
        }

    async def synthesize(self, voice: str, text: str) -> bytes:
        """
        Narrate `text` with `voice` and return MP3 bytes.

        Raises:
            SynthesisPending: Deadline exceeded (asyncio or transport timeout).
            UpstreamError: Non-success status, transport failure or empty audio.
        """
        url = f"{self._config.base_url}/v1/text-to-speech/{voice}"
        headers = {
            "accept": "audio/mpeg",
            "xi-api-key": self._config.api_key,
        }
        timeout_s = self._config.timeout_s
        debug(_LOG, "tts_call", voice=voice, chars=len(text), timeout_s=timeout_s)

        try:
            response = await asyncio.wait_for(
                self._client.post(
                    url,
                    params={"output_format": self._config.output_format},
                    headers=headers,
                    json=self._payload(text),
                    timeout=timeout_s,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            warn(_LOG, "tts_timeout", voice=voice, timeout_s=timeout_s)
            raise SynthesisPending(timeout_s) from e
        except httpx.HTTPError as e:
            raise UpstreamError("TTS request failed", 502, detail=str(e)) from e

        if not response.is_success:
            raise UpstreamError("TTS synthesis failed", response.status_code, detail=response.text)

        audio = response.content
        if not audio:
            raise UpstreamError("TTS synthesis returned no audio", 502)
        return audio
