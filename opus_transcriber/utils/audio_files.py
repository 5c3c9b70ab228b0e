# opus_transcriber/utils/audio_files.py
# -------------------------------------------------------------------
# Purpose:
#   - Decide whether a picked file is a supported audio file.
#   - Build the data URI the UI sends and recover the bytes on the relay.
# -------------------------------------------------------------------
from __future__ import annotations

import base64
import binascii
import re
from typing import Callable, Optional

from opus_transcriber.errors import AudioReadError, InvalidAudioPayload
from opus_transcriber.models.transcript import UploadedAudio

FALLBACK_MIME_TYPE = "application/octet-stream"

SUPPORTED_MIME_TYPES = ("audio/opus", "audio/ogg", "audio/m4a", "audio/mp4")

EXTENSION_MIME_TYPES = {
    "opus": "audio/opus",
    "ogg": "audio/ogg",
    "m4a": "audio/m4a",
}

# accept list for file pickers (extensions without the dot)
UPLOAD_EXTENSIONS = list(EXTENSION_MIME_TYPES)

MSG_UNSUPPORTED_FILE = "Please select an .opus, .ogg, or .m4a file."

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")
_NON_ALPHABET = re.compile(r"[^A-Za-z0-9+/]")


def _extension(filename: str) -> str:
    name = (filename or "").lower()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def is_supported_audio(filename: str, mime_type: Optional[str]) -> bool:
    """True if either the declared MIME type or the extension is opus/ogg/m4a."""
    if (mime_type or "") in SUPPORTED_MIME_TYPES:
        return True
    return _extension(filename) in EXTENSION_MIME_TYPES


def resolve_mime_type(filename: str, declared: Optional[str]) -> str:
    """Declared type wins; otherwise guess from the extension."""
    if declared:
        return declared
    return EXTENSION_MIME_TYPES.get(_extension(filename), FALLBACK_MIME_TYPE)


def load_audio(filename: str, declared_mime: Optional[str], read: Callable[[], bytes]) -> UploadedAudio:
    """
    Validate a picked file and read its content.
    `read` is whatever fetches the bytes (Path.read_bytes, UploadedFile.getvalue).
    """
    if not is_supported_audio(filename, declared_mime):
        raise ValueError(MSG_UNSUPPORTED_FILE)
    try:
        data = read()
    except OSError as e:
        raise AudioReadError() from e
    return UploadedAudio(
        filename=filename,
        mime_type=resolve_mime_type(filename, declared_mime),
        data=data,
    )


def encode_data_uri(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or FALLBACK_MIME_TYPE};base64,{encoded}"


def _normalize_base64(data: str) -> str:
    # standard and URL-safe alphabets both accepted; anything after the
    # first "=" and any character outside the alphabet is ignored
    data = data.split("=", 1)[0].translate(_URLSAFE_TO_STANDARD)
    data = _NON_ALPHABET.sub("", data)
    if len(data) % 4 == 1:
        # a lone trailing character carries no full byte
        data = data[:-1]
    return data + "=" * (-len(data) % 4)


def decode_data_uri(payload: str) -> bytes:
    """Strip the data URI header and decode the base64 part."""
    _, sep, data = (payload or "").partition(",")
    if not sep or not data:
        raise InvalidAudioPayload()
    try:
        audio = base64.b64decode(_normalize_base64(data))
    except (binascii.Error, ValueError) as e:
        raise InvalidAudioPayload() from e
    if not audio:
        raise InvalidAudioPayload()
    return audio
