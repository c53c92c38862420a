import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from oxbow.api.deps import LLMFactoryDep
from oxbow.api.routes.mirrors import error_response

router = APIRouter()
logger = logging.getLogger(__name__)


class TranscribeAudioRequest(BaseModel):
    audioBase64: str | None = None


def decode_audio(audio_base64: str | None) -> bytes:
    if not audio_base64 or not audio_base64.strip():
        raise ValueError("audioBase64 is required")
    try:
        return base64.b64decode(audio_base64.strip(), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"audioBase64 is not valid base64: {exc}") from exc


@router.post("/transcribe-audio")
async def transcribe_audio(payload: TranscribeAudioRequest, llm_factory: LLMFactoryDep) -> Any:
    try:
        audio = decode_audio(payload.audioBase64)
        logger.info("Transcribing audio (%s bytes)", len(audio))
        text = await llm_factory().transcribe(audio)
    except Exception as exc:
        logger.error("Error in transcribe-audio: %s", exc)
        return error_response(500, str(exc) or "Transcription failed")

    return {"success": True, "text": text}
