"""Relay error hierarchy. Every message is forwarded to the user verbatim."""


class RelayError(Exception):
    pass


class InvalidAudioPayload(RelayError):
    def __init__(self, message: str = "Invalid base64 audio data received."):
        super().__init__(message)


class ProviderError(RelayError):
    """Non-2xx response, unparsable body or transport failure from the provider."""


class TranscriptionFailedError(RelayError):
    def __init__(self, detail: str | None):
        super().__init__(f"Transcription failed: {detail}")
        self.detail = detail


class EmptyTranscriptionError(RelayError):
    def __init__(self):
        super().__init__("The API returned an empty transcription.")


class TranscriptionTimeoutError(RelayError):
    def __init__(self, attempts: int):
        super().__init__("Transcription timed out.")
        self.attempts = attempts


class AudioReadError(Exception):
    def __init__(self, message: str = "File could not be read."):
        super().__init__(message)


class TranscriptionAdapterError(Exception):
    """Raised by the UI-side adapter; carries the message shown in the error panel."""
