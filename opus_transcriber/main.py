import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from opus_transcriber.clients.assemblyai_client import AssemblyAIClient
from opus_transcriber.config import DEFAULT_MAX_REQUEST_BYTES, Settings, load_settings
from opus_transcriber.routes import transcribe
from opus_transcriber.services.poll_policy import PollPolicy
from opus_transcriber.services.transcription_relay import TranscriptionRelay

# Load environment variables early (provider key, port, etc.)
load_dotenv()

logger = logging.getLogger(__name__)

STATIC_DIR = Path(os.getenv("STATIC_DIR") or Path(__file__).parent / "static")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_relay(settings: Settings) -> TranscriptionRelay:
    provider = AssemblyAIClient(
        api_key=settings.assemblyai_api_key,
        base_url=settings.assemblyai_base_url,
        timeout=settings.provider_timeout_sec,
    )
    policy = PollPolicy(
        interval=settings.poll_interval_sec,
        max_attempts=settings.poll_max_attempts,
    )
    return TranscriptionRelay(provider, policy)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # settings are resolved once; run() may already have done it
    if getattr(app.state, "settings", None) is None:
        app.state.settings = load_settings()
    settings = app.state.settings
    _setup_logging(settings.log_level)
    if getattr(app.state, "relay", None) is None:
        app.state.relay = build_relay(settings)
    logger.info("Opus transcriber relay ready")
    yield


app = FastAPI(title="Opus Transcriber", lifespan=lifespan)


# CORS is added after this, so it wraps the 413 replies too
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    settings = getattr(request.app.state, "settings", None)
    limit = settings.max_request_bytes if settings else DEFAULT_MAX_REQUEST_BYTES
    length = request.headers.get("content-length")
    if length and length.isdigit():
        too_large = int(length) > limit
    else:
        # chunked upload: no declared length, count what actually arrives
        too_large = len(await request.body()) > limit
    if too_large:
        return JSONResponse(status_code=413, content={"error": "Request body too large"})
    return await call_next(request)


# --- CORS -----------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.get("/health")
def health():
    return {"ok": True}


# --- Routers --------------------------------------------------------------
app.include_router(transcribe.router, prefix="/api", tags=["transcription"])


# --- Static UI (single-page app) -----------------------------------------
@app.get("/{full_path:path}", include_in_schema=False)
def serve_ui(full_path: str):
    """Serve a file from the UI bundle, or index.html for any other route."""
    root = STATIC_DIR.resolve()
    if full_path:
        candidate = (root / full_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)

    index = root / "index.html"
    if not index.is_file():
        return JSONResponse(status_code=404, content={"error": "UI bundle not found"})
    return FileResponse(index)


def run() -> None:
    settings = load_settings()
    app.state.settings = settings
    _setup_logging(settings.log_level)
    logger.info(f"Opus transcriber server running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
