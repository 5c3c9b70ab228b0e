import pytest

from opus_transcriber.errors import (
    EmptyTranscriptionError,
    InvalidAudioPayload,
    ProviderError,
    TranscriptionFailedError,
    TranscriptionTimeoutError,
)
from opus_transcriber.models.transcript import TranscriptionOptions
from opus_transcriber.services.poll_policy import PollPolicy
from opus_transcriber.services.transcription_relay import RelayState

from conftest import JOB_ID, UPLOAD_URL, FakeProvider, job

PAYLOAD = "data:audio/ogg;base64,AAAA"


@pytest.mark.asyncio
async def test_completed_job_returns_text(make_relay, fake_sleep):
    provider = FakeProvider([job("completed", text="hallo welt")])
    relay = make_relay(provider)

    result = await relay.transcribe(PAYLOAD, "audio/ogg")

    assert result == "hallo welt"
    assert provider.uploads == [b"\x00\x00\x00"]
    assert provider.created == [(UPLOAD_URL, TranscriptionOptions())]
    assert provider.polled == [JOB_ID]
    assert fake_sleep.calls == [3.0]


@pytest.mark.asyncio
async def test_job_options_request_german_best_model(make_relay):
    provider = FakeProvider([job("completed", text="ok")])
    await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")

    _, options = provider.created[0]
    assert options.model_dump() == {
        "speech_model": "best",
        "language_code": "de",
        "speaker_labels": True,
        "format_text": True,
        "punctuate": True,
    }


@pytest.mark.asyncio
async def test_keeps_polling_while_processing(make_relay, fake_sleep):
    provider = FakeProvider(
        [job("queued"), job("processing"), job("processing"), job("completed", text="fertig")]
    )
    result = await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")

    assert result == "fertig"
    assert len(provider.polled) == 4
    assert fake_sleep.calls == [3.0] * 4


@pytest.mark.asyncio
async def test_unknown_status_counts_as_processing(make_relay):
    provider = FakeProvider([job("something-new"), job("completed", text="ok")])
    assert await make_relay(provider).transcribe(PAYLOAD, "audio/ogg") == "ok"


@pytest.mark.parametrize("text", [None, ""])
@pytest.mark.asyncio
async def test_completed_without_text_is_a_failure(make_relay, text):
    provider = FakeProvider([job("completed", text=text)])
    with pytest.raises(EmptyTranscriptionError, match="The API returned an empty transcription."):
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")


@pytest.mark.asyncio
async def test_error_status_propagates_provider_detail(make_relay):
    provider = FakeProvider([job("processing"), job("error", error="Audio file is corrupt")])
    with pytest.raises(TranscriptionFailedError, match="Transcription failed: Audio file is corrupt"):
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")
    assert len(provider.polled) == 2


@pytest.mark.asyncio
async def test_times_out_after_max_attempts(make_relay, fake_sleep):
    provider = FakeProvider([job("processing")])
    with pytest.raises(TranscriptionTimeoutError, match="Transcription timed out.") as exc:
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")

    assert exc.value.attempts == 60
    assert len(provider.polled) == 60
    assert fake_sleep.calls == [3.0] * 60


@pytest.mark.asyncio
async def test_custom_policy_ceiling(make_relay, fake_sleep):
    provider = FakeProvider([job("processing")])
    with pytest.raises(TranscriptionTimeoutError):
        await make_relay(provider, max_attempts=2, interval=0.5).transcribe(PAYLOAD, "audio/ogg")
    assert fake_sleep.calls == [0.5, 0.5]


@pytest.mark.asyncio
async def test_upload_failure_skips_job_creation(make_relay, fake_sleep):
    provider = FakeProvider(
        [job("completed", text="never")],
        upload_error=ProviderError("HTTP 401: Unauthorized - {}"),
    )
    with pytest.raises(ProviderError, match="HTTP 401"):
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")

    assert provider.created == []
    assert provider.polled == []
    assert fake_sleep.calls == []


@pytest.mark.asyncio
async def test_job_creation_failure_skips_polling(make_relay):
    provider = FakeProvider([job("completed", text="never")], create_error=ProviderError("HTTP 500"))
    with pytest.raises(ProviderError):
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")
    assert provider.polled == []


@pytest.mark.asyncio
async def test_poll_transport_failure_aborts_without_retry(make_relay):
    provider = FakeProvider([job("processing"), ProviderError("connection reset"), job("completed", text="x")])
    with pytest.raises(ProviderError, match="connection reset"):
        await make_relay(provider).transcribe(PAYLOAD, "audio/ogg")
    assert len(provider.polled) == 2


@pytest.mark.asyncio
async def test_malformed_payload_never_reaches_provider(make_relay):
    provider = FakeProvider([job("completed", text="x")])
    with pytest.raises(InvalidAudioPayload, match="Invalid base64 audio data received."):
        await make_relay(provider).transcribe("no-comma-here", "audio/opus")
    assert provider.uploads == []


def test_poll_policy_rejects_bad_values():
    with pytest.raises(ValueError):
        PollPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        PollPolicy(interval=-1)


@pytest.mark.asyncio
async def test_run_walks_states_in_order(make_relay):
    run = make_relay(FakeProvider([job("processing"), job("completed", text="ok")])).new_run()
    assert run.state == RelayState.received

    assert await run.execute(PAYLOAD, "audio/ogg") == "ok"

    assert run.state == RelayState.done
    assert run.history == [RelayState.received, RelayState.uploading, RelayState.polling, RelayState.done]
    assert run.job_id == JOB_ID
    assert run.attempts == 2


@pytest.mark.asyncio
async def test_run_ends_failed_when_upload_fails(make_relay):
    provider = FakeProvider([job("completed", text="x")], upload_error=ProviderError("HTTP 500"))
    run = make_relay(provider).new_run()

    with pytest.raises(ProviderError):
        await run.execute(PAYLOAD, "audio/ogg")

    assert run.state == RelayState.failed
    assert run.history == [RelayState.received, RelayState.uploading, RelayState.failed]
    assert run.job_id is None


@pytest.mark.asyncio
async def test_run_ends_failed_on_timeout(make_relay):
    run = make_relay(FakeProvider([job("queued")]), max_attempts=2).new_run()

    with pytest.raises(TranscriptionTimeoutError):
        await run.execute(PAYLOAD, "audio/ogg")

    assert run.state == RelayState.failed
    assert run.history[-2:] == [RelayState.polling, RelayState.failed]
    assert RelayState.done not in run.history


@pytest.mark.asyncio
async def test_run_ends_failed_on_malformed_payload(make_relay):
    run = make_relay(FakeProvider([job("completed", text="x")])).new_run()

    with pytest.raises(InvalidAudioPayload):
        await run.execute("no-comma-here", "audio/opus")

    assert run.history == [RelayState.received, RelayState.failed]


@pytest.mark.asyncio
async def test_each_request_gets_a_fresh_run(make_relay):
    relay = make_relay(FakeProvider([job("completed", text="x")]))
    first, second = relay.new_run(), relay.new_run()
    await first.execute(PAYLOAD, "audio/ogg")
    assert second.state == RelayState.received
    assert second.history == [RelayState.received]
