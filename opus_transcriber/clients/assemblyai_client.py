# opus_transcriber/clients/assemblyai_client.py
# ------------------------------------------------------------
# AssemblyAI client — the three provider calls the relay needs:
#   upload_audio      POST /v2/upload          -> upload_url
#   create_transcript POST /v2/transcript      -> job id
#   get_transcript    GET  /v2/transcript/{id} -> TranscriptJob
#
# Every call is a single attempt. Non-2xx, unparsable bodies and
# transport errors all surface as ProviderError.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from opus_transcriber.errors import ProviderError
from opus_transcriber.models.transcript import TranscriptionOptions, TranscriptJob

logger = logging.getLogger(__name__)


class AssemblyAIClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise RuntimeError("ASSEMBLYAI_API_KEY not set in .env")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {"Authorization": api_key}
        # tests swap in httpx.MockTransport
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(
                    method,
                    url,
                    headers={**self._headers, **(headers or {})},
                    content=content,
                    json=json,
                )
        except httpx.HTTPError as e:
            raise ProviderError(f"Request to {url} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise ProviderError(f"HTTP {resp.status_code}: {resp.reason_phrase} - {resp.text}")

        try:
            body = resp.json()
        except ValueError:
            raise ProviderError(f"Failed to parse response: {resp.text}")
        if not isinstance(body, dict):
            raise ProviderError(f"Failed to parse response: {resp.text}")
        return body

    async def upload_audio(self, audio: bytes) -> str:
        body = await self._request(
            "POST",
            "/v2/upload",
            headers={"Content-Type": "application/octet-stream"},
            content=audio,
        )
        upload_url = body.get("upload_url")
        if not upload_url:
            raise ProviderError("Upload response did not contain an upload_url.")
        return upload_url

    async def create_transcript(self, audio_url: str, options: TranscriptionOptions) -> str:
        body = await self._request(
            "POST",
            "/v2/transcript",
            json={"audio_url": audio_url, **options.model_dump()},
        )
        job_id = body.get("id")
        if not job_id:
            raise ProviderError("Transcript response did not contain an id.")
        return str(job_id)

    async def get_transcript(self, job_id: str) -> TranscriptJob:
        body = await self._request("GET", f"/v2/transcript/{job_id}")
        body.setdefault("id", job_id)
        body.setdefault("status", "")
        return TranscriptJob.model_validate(body)
