import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from oxbow.api.deps import LLMFactoryDep, SessionDep
from oxbow.core.config import settings
from oxbow.mirror.artifacts import FALLBACK_PREVIEW
from oxbow.mirror.errors import PreconditionError, RateLimitError
from oxbow.mirror.orchestrator import (
    generate_day_one_mirror,
    generate_onboarding_preview,
    generate_standard_mirror,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class GenerateMirrorRequest(BaseModel):
    customUserId: uuid.UUID | None = None


class GenerateDayOneMirrorRequest(BaseModel):
    userId: uuid.UUID | None = None


class OnboardingPreviewRequest(BaseModel):
    journalContent: str | None = None


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/generate-mirror")
async def generate_mirror(
    payload: GenerateMirrorRequest,
    session: SessionDep,
    llm_factory: LLMFactoryDep,
) -> Any:
    if payload.customUserId is None:
        return error_response(400, "customUserId is required")

    try:
        llm = llm_factory()
        result = await generate_standard_mirror(session, payload.customUserId, llm)
    except PreconditionError as exc:
        return error_response(400, str(exc))
    except RateLimitError as exc:
        return error_response(429, str(exc))
    except Exception as exc:
        logger.exception("Error in generate-mirror")
        return error_response(
            500,
            str(exc) or "Mirror generation failed",
            errorType=getattr(exc, "error_type", "exception"),
            timestamp=_timestamp(),
        )

    logger.info("Mirror generation complete (%s journals)", result.journals_used)
    return {
        "success": True,
        "mirror": result.mirror.model_dump(mode="json"),
        "journalsUsed": result.journals_used,
    }


@router.post("/generate-day-1-mirror")
async def generate_day_1_mirror(
    payload: GenerateDayOneMirrorRequest,
    session: SessionDep,
    llm_factory: LLMFactoryDep,
) -> Any:
    try:
        if payload.userId is None:
            raise PreconditionError("userId is required")
        llm = llm_factory()
        result = await generate_day_one_mirror(session, payload.userId, llm)
    except Exception as exc:
        logger.exception("Error in generate-day-1-mirror")
        return error_response(500, str(exc) or "Day 1 Mirror generation failed")

    return {
        "success": True,
        "mirror": result.mirror.model_dump(mode="json"),
        "summaries": result.summaries.model_dump(mode="json"),
    }


@router.post("/generate-onboarding-preview")
async def generate_preview(payload: OnboardingPreviewRequest, llm_factory: LLMFactoryDep) -> Any:
    """Always 200; on failure the client shows the canned fallback."""
    try:
        llm = llm_factory(
            model_name=settings.MODEL_PREVIEW,
            max_completion_tokens=settings.PREVIEW_MAX_COMPLETION_TOKENS,
        )
        preview = await generate_onboarding_preview(payload.journalContent or "", llm)
    except Exception as exc:
        logger.error("Onboarding preview failed, returning fallback: %s", exc)
        return {
            "success": False,
            "error": str(exc) or "Preview generation failed",
            "fallback": FALLBACK_PREVIEW.model_dump(mode="json"),
        }

    return {"success": True, "content": preview.model_dump(mode="json")}
