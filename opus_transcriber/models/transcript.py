from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TranscribeRequest(BaseModel):
    """
    Body of POST /api/transcribe.
    - base64Audio: data URI produced by the UI (data:<mime>;base64,<payload>)
    - mimeType: declared MIME type of the uploaded file
    Both are optional here so the route can answer 400 instead of 422.
    """
    base64Audio: Optional[str] = None
    mimeType: Optional[str] = None


class TranscribeResponse(BaseModel):
    transcription: str


class ErrorResponse(BaseModel):
    error: str


class TranscriptStatus(str, Enum):
    queued = "queued"
    processing = "processing"
    completed = "completed"
    error = "error"


class TranscriptJob(BaseModel):
    """
    A transcription job as reported by the provider.
    Unknown status values are kept as plain strings and count as still running.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TranscriptStatus.completed.value

    @property
    def is_failed(self) -> bool:
        return self.status == TranscriptStatus.error.value


class TranscriptionOptions(BaseModel):
    """Fixed options sent with every job-creation request."""
    speech_model: str = "best"
    language_code: str = "de"
    speaker_labels: bool = True
    format_text: bool = True
    punctuate: bool = True


class UploadedAudio(BaseModel):
    filename: str
    mime_type: str
    data: bytes = Field(repr=False)

    @property
    def size_kb(self) -> float:
        return len(self.data) / 1024
