# opus_transcriber/config.py
# -------------------------------------------------------------------
# Purpose:
#   - Resolve all process-wide settings once at startup.
#   - The provider credential is required; nothing is hardcoded.
#
# Env (see .env.example):
#   ASSEMBLYAI_API_KEY   - required
#   ASSEMBLYAI_BASE_URL  - default https://api.assemblyai.com
#   HOST / PORT          - default 0.0.0.0 / 3000
#   POLL_INTERVAL_SEC    - default 3.0
#   POLL_MAX_ATTEMPTS    - default 60
#   PROVIDER_TIMEOUT_SEC - default 60.0
#   MAX_REQUEST_BYTES    - default 50 MB
#   LOG_LEVEL            - default INFO
#   RELAY_URL            - where the UI finds the relay
# -------------------------------------------------------------------
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.assemblyai.com"
DEFAULT_RELAY_URL = "http://127.0.0.1:3000"
DEFAULT_MAX_REQUEST_BYTES = 50 * 1024 * 1024


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    assemblyai_api_key: str
    assemblyai_base_url: str = DEFAULT_BASE_URL
    host: str = "0.0.0.0"
    port: int = 3000
    poll_interval_sec: float = 3.0
    poll_max_attempts: int = 60
    provider_timeout_sec: float = 60.0
    max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()

    api_key = (os.getenv("ASSEMBLYAI_API_KEY") or "").strip()
    if not api_key:
        raise RuntimeError("ASSEMBLYAI_API_KEY not set in .env")

    return Settings(
        assemblyai_api_key=api_key,
        assemblyai_base_url=(os.getenv("ASSEMBLYAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_getenv_int("PORT", 3000),
        poll_interval_sec=_getenv_float("POLL_INTERVAL_SEC", 3.0),
        poll_max_attempts=_getenv_int("POLL_MAX_ATTEMPTS", 60),
        provider_timeout_sec=_getenv_float("PROVIDER_TIMEOUT_SEC", 60.0),
        max_request_bytes=_getenv_int("MAX_REQUEST_BYTES", DEFAULT_MAX_REQUEST_BYTES),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def relay_url() -> str:
    """Base URL of the relay, as seen by the UI."""
    load_dotenv()
    return (os.getenv("RELAY_URL") or DEFAULT_RELAY_URL).rstrip("/")
