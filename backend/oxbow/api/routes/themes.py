import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from oxbow.api.deps import LLMClientFactory, LLMFactoryDep
from oxbow.api.routes.mirrors import error_response
from oxbow.core.config import settings
from oxbow.mirror.prompts.onboarding import build_focus_theme_prompt

router = APIRouter()
logger = logging.getLogger(__name__)

FALLBACK_THEME = "Growth"


class FocusThemeRequest(BaseModel):
    focusText: str | None = None


async def extract_focus_theme(focus_text: str, llm_factory: LLMClientFactory) -> str:
    if not settings.OPENAI_API_KEY:
        logger.warning("OpenAI key not configured, using fallback theme")
        return FALLBACK_THEME
    try:
        llm = llm_factory(model_name=settings.MODEL_FOCUS_THEME)
        return await llm.complete_text(
            build_focus_theme_prompt(focus_text),
            max_tokens=settings.FOCUS_THEME_MAX_TOKENS,
        )
    except Exception as exc:
        logger.warning("Focus theme extraction failed, using fallback: %s", exc)
        return FALLBACK_THEME


@router.post("/extract-focus-theme")
async def extract_theme(payload: FocusThemeRequest, llm_factory: LLMFactoryDep) -> Any:
    if not payload.focusText:
        return error_response(500, "focusText is required")

    logger.info("Extracting theme from: %s", payload.focusText[:50])
    theme = await extract_focus_theme(payload.focusText, llm_factory)
    return {"success": True, "theme": theme}
