# opus_transcriber/clients/relay_client.py
import logging
from typing import Optional

import requests

from opus_transcriber.config import relay_url
from opus_transcriber.errors import TranscriptionAdapterError

logger = logging.getLogger(__name__)

TRANSCRIBE_PATH = "/api/transcribe"
MSG_INVALID_DATA = "Received invalid transcription data from server."
MSG_UNKNOWN_ERROR = "An unknown error occurred during transcription."


class RelayClient:
    """
    UI-side adapter for the relay's POST /api/transcribe.
    One request per call, no retries. Every failure is raised as
    TranscriptionAdapterError with a message fit for the error panel.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 300.0):
        # the relay holds the request open for up to ~3 minutes while polling
        self.base_url = (base_url or relay_url()).rstrip("/")
        self.timeout = timeout

    def transcribe(self, base64_audio: str, mime_type: str) -> str:
        logger.info("Sending transcription request to server...")
        try:
            r = requests.post(
                f"{self.base_url}{TRANSCRIBE_PATH}",
                json={"base64Audio": base64_audio, "mimeType": mime_type},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error contacting server during transcription: {e}")
            raise TranscriptionAdapterError(str(e) or MSG_UNKNOWN_ERROR) from e

        if not r.ok:
            raise TranscriptionAdapterError(self._error_message(r))

        try:
            js = r.json()
        except ValueError:
            raise TranscriptionAdapterError(MSG_INVALID_DATA)

        text = js.get("transcription") if isinstance(js, dict) else None
        if not isinstance(text, str):
            raise TranscriptionAdapterError(MSG_INVALID_DATA)

        logger.info("Received transcription from server.")
        return text

    @staticmethod
    def _error_message(r: requests.Response) -> str:
        fallback = f"HTTP {r.status_code}: {r.reason}"
        try:
            js = r.json()
        except ValueError:
            return fallback
        if isinstance(js, dict) and js.get("error"):
            return str(js["error"])
        return fallback
