import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from opus_transcriber.errors import RelayError
from opus_transcriber.models.transcript import ErrorResponse, TranscribeRequest, TranscribeResponse
from opus_transcriber.services.transcription_relay import TranscriptionRelay

router = APIRouter()
logger = logging.getLogger(__name__)

MSG_MISSING_FIELDS = "Missing base64Audio or mimeType"
MSG_UNKNOWN_ERROR = "An unknown error occurred."


def get_relay(request: Request) -> TranscriptionRelay:
    """The relay built at startup (see main.lifespan)."""
    relay = getattr(request.app.state, "relay", None)
    if relay is None:
        raise RuntimeError("Transcription relay is not configured")
    return relay


@router.post(
    "/transcribe",
    response_model=TranscribeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def transcribe(body: TranscribeRequest, relay: TranscriptionRelay = Depends(get_relay)):
    """
    Decode the data URI, hand it to the provider and block until the
    job finishes, fails or times out.
    """
    logger.info("Received transcription request")
    if not body.base64Audio or not body.mimeType:
        return JSONResponse(status_code=400, content={"error": MSG_MISSING_FIELDS})

    try:
        text = await relay.transcribe(body.base64Audio, body.mimeType)
    except RelayError as e:
        logger.error(f"Error during transcription: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception as e:
        logger.exception("Unexpected error during transcription")
        return JSONResponse(status_code=500, content={"error": str(e) or MSG_UNKNOWN_ERROR})

    return TranscribeResponse(transcription=text)
