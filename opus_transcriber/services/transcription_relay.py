# opus_transcriber/services/transcription_relay.py
# ------------------------------------------------------------
# Relay orchestration for one transcription request:
#
#   RECEIVED -> UPLOADING -> POLLING -> DONE | FAILED
#
# Steps run strictly in order (decode, upload, create job, poll).
# Any error aborts the whole request; nothing is retried.
# The provider client and the poll policy are injected so the
# loop can be driven by fakes without real network or delay.
# ------------------------------------------------------------
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

from opus_transcriber.errors import (
    EmptyTranscriptionError,
    TranscriptionFailedError,
    TranscriptionTimeoutError,
)
from opus_transcriber.models.transcript import TranscriptionOptions, TranscriptJob
from opus_transcriber.services.poll_policy import PollPolicy
from opus_transcriber.utils.audio_files import decode_data_uri

logger = logging.getLogger(__name__)


class RelayState(str, Enum):
    received = "received"
    uploading = "uploading"
    polling = "polling"
    done = "done"
    failed = "failed"


class TranscriptionProvider(Protocol):
    async def upload_audio(self, audio: bytes) -> str: ...

    async def create_transcript(self, audio_url: str, options: TranscriptionOptions) -> str: ...

    async def get_transcript(self, job_id: str) -> TranscriptJob: ...


class TranscriptionRelay:
    def __init__(
        self,
        provider: TranscriptionProvider,
        policy: Optional[PollPolicy] = None,
        options: Optional[TranscriptionOptions] = None,
    ):
        self.provider = provider
        self.policy = policy or PollPolicy()
        self.options = options or TranscriptionOptions()

    def new_run(self) -> RelayRun:
        return RelayRun(self)

    async def transcribe(self, base64_audio: str, mime_type: str) -> str:
        """Run one request through the state machine and return the text."""
        return await self.new_run().execute(base64_audio, mime_type)


class RelayRun:
    """State of a single request; discarded when the request ends."""

    def __init__(self, relay: TranscriptionRelay):
        self.relay = relay
        self.state = RelayState.received
        self.history = [RelayState.received]
        self.job_id: Optional[str] = None
        self.attempts = 0

    def _move(self, state: RelayState) -> None:
        logger.debug(f"Relay state {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def execute(self, base64_audio: str, mime_type: str) -> str:
        try:
            return await self._run(base64_audio, mime_type)
        except Exception:
            self._move(RelayState.failed)
            raise

    async def _run(self, base64_audio: str, mime_type: str) -> str:
        provider = self.relay.provider
        logger.info(f"Starting transcription ({mime_type})")

        audio = decode_data_uri(base64_audio)

        self._move(RelayState.uploading)
        logger.info(f"Uploading {len(audio)} bytes to provider")
        upload_url = await provider.upload_audio(audio)
        logger.info(f"File uploaded, URL: {upload_url}")

        self.job_id = await provider.create_transcript(upload_url, self.relay.options)
        logger.info(f"Transcription started, ID: {self.job_id}")

        self._move(RelayState.polling)
        return await self._poll()

    async def _poll(self) -> str:
        policy = self.relay.policy
        while self.attempts < policy.max_attempts:
            await policy.wait()
            self.attempts += 1
            logger.info(f"Checking status of {self.job_id} (attempt {self.attempts})")
            job = await self.relay.provider.get_transcript(self.job_id)

            if job.is_completed:
                if not job.text:
                    raise EmptyTranscriptionError()
                self._move(RelayState.done)
                logger.info(f"Transcription {self.job_id} completed")
                return job.text
            if job.is_failed:
                raise TranscriptionFailedError(job.error)

        raise TranscriptionTimeoutError(self.attempts)
