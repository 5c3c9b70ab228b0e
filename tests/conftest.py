import pytest

from opus_transcriber.models.transcript import TranscriptJob
from opus_transcriber.services.poll_policy import PollPolicy
from opus_transcriber.services.transcription_relay import TranscriptionRelay

UPLOAD_URL = "https://cdn.example.test/upload/abc"
JOB_ID = "job-1"


def job(status: str, text=None, error=None) -> TranscriptJob:
    return TranscriptJob(id=JOB_ID, status=status, text=text, error=error)


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeProvider:
    """
    Scripted provider. `statuses` are returned in order by get_transcript;
    the last one repeats. Exceptions in the script are raised instead.
    """

    def __init__(self, statuses=(), upload_error=None, create_error=None):
        self.statuses = list(statuses)
        self.upload_error = upload_error
        self.create_error = create_error
        self.uploads = []
        self.created = []
        self.polled = []

    async def upload_audio(self, audio: bytes) -> str:
        if self.upload_error:
            raise self.upload_error
        self.uploads.append(audio)
        return UPLOAD_URL

    async def create_transcript(self, audio_url, options) -> str:
        if self.create_error:
            raise self.create_error
        self.created.append((audio_url, options))
        return JOB_ID

    async def get_transcript(self, job_id: str) -> TranscriptJob:
        self.polled.append(job_id)
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def make_relay(fake_sleep):
    def _make(provider, max_attempts: int = 60, interval: float = 3.0):
        policy = PollPolicy(interval=interval, max_attempts=max_attempts, sleep=fake_sleep)
        return TranscriptionRelay(provider, policy)

    return _make
