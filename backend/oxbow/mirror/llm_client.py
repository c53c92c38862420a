import asyncio
import json
import logging
import re
from collections.abc import Callable
from typing import Any

import openai
from openai import AsyncOpenAI

from oxbow.core.config import settings
from oxbow.mirror.artifacts import CallResult, TokenUsage
from oxbow.mirror.errors import TranscriptionError

logger = logging.getLogger(__name__)

CONTENT_FILTER = "content_filter"


def _strip_code_fences(text: str) -> str:
    if not text:
        return ""
    return re.sub(r"```(?:json)?\n?", "", text, flags=re.IGNORECASE).strip()


def _collapse_whitespace(text: str) -> str:
    """Raw newlines, tabs and carriage returns are illegal inside JSON strings."""
    return text.replace("\r", "").replace("\n", " ").replace("\t", " ")


def _escape_unbalanced_quotes(text: str) -> str:
    """Escape quotes inside string values that do not close the string.

    A quote closes a string only when the next non-space character is one of
    ``, } ] :`` (or end of input); any other quote is treated as part of the value.
    """
    text = _collapse_whitespace(text)
    out: list[str] = []
    in_string = False
    escape = False
    length = len(text)
    for i, ch in enumerate(text):
        if not in_string:
            if ch == '"':
                in_string = True
            out.append(ch)
            continue
        if escape:
            escape = False
            out.append(ch)
            continue
        if ch == "\\":
            escape = True
            out.append(ch)
            continue
        if ch == '"':
            j = i + 1
            while j < length and text[j] == " ":
                j += 1
            if j >= length or text[j] in ",}]:":
                in_string = False
                out.append(ch)
            else:
                out.append('\\"')
            continue
        out.append(ch)
    return "".join(out)


# Applied in order after a direct parse fails; each step starts from the unrepaired text.
JSON_REPAIRS: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("collapse_whitespace", _collapse_whitespace),
    ("escape_unbalanced_quotes", _escape_unbalanced_quotes),
)


def parse_json_with_repairs(text: str, *, label: str = "completion") -> dict[str, Any]:
    """Parse model output as a JSON object, escalating through JSON_REPAIRS."""
    candidates: list[tuple[str, Callable[[str], str] | None]] = [("direct", None), *JSON_REPAIRS]
    final = len(candidates) - 1
    for attempt, (name, repair) in enumerate(candidates):
        candidate = repair(text) if repair else text
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            logger.info("[%s] JSON parse failed (%s): %s", label, name, exc)
            if attempt == final:
                raise
            continue
        except RecursionError as exc:
            # Repairs never change nesting depth
            raise ValueError("JSON nesting too deep to parse") from exc
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        if repair is not None:
            logger.info("[%s] JSON parsed after %s repair", label, name)
        return parsed
    raise ValueError("No JSON parse attempts configured")


def _usage_from_response(response: Any) -> TokenUsage | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None

    def _int(name: str) -> int:
        value = getattr(usage, name, 0)
        return value if isinstance(value, int) else 0

    return TokenUsage(
        prompt_tokens=_int("prompt_tokens"),
        completion_tokens=_int("completion_tokens"),
        total_tokens=_int("total_tokens"),
    )


class LLMClient:
    """Chat-completion client that reports every provider fault as a tagged CallResult."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        max_completion_tokens: int | None = None,
    ):
        self.model_name = model_name or settings.MODEL_MIRROR
        self.max_completion_tokens = max_completion_tokens or settings.MIRROR_MAX_COMPLETION_TOKENS

        resolved_api_key = api_key or settings.OPENAI_API_KEY
        if not resolved_api_key:
            raise RuntimeError("OPENAI_API_KEY not configured")
        resolved_base_url = base_url or settings.LLM_BASE_URL

        # Retries belong to the Mirror retry wrapper, never to the SDK.
        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            max_retries=0,
        )

    def _chat_completion_kwargs(self, *, json_mode: bool, max_tokens: int | None) -> dict:
        kwargs: dict[str, Any] = {"max_completion_tokens": max_tokens or self.max_completion_tokens}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    async def complete(
        self,
        prompt: str,
        label: str,
        timeout: float | None = None,
        *,
        max_tokens: int | None = None,
    ) -> CallResult:
        """
        Send one JSON-mode chat completion and classify the outcome.
        Never raises for provider or network faults.
        """
        timeout = timeout or settings.MIRROR_TIMEOUT_SECONDS
        logger.info("[%s] Issuing completion to %s (prompt %s chars)", label, self.model_name, len(prompt))
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[{"role": "user", "content": prompt}],
                    **self._chat_completion_kwargs(json_mode=True, max_tokens=max_tokens),
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError):
            logger.error("[%s] Completion timed out after %ss", label, timeout)
            return CallResult(
                label=label,
                finish_reason="timeout",
                error=f"Request timed out after {timeout:g} seconds",
            )
        except openai.APIStatusError as exc:
            logger.error("[%s] Provider error %s: %s", label, exc.status_code, exc.message)
            return CallResult(
                label=label,
                finish_reason="api_error",
                status_code=exc.status_code,
                error=f"OpenAI API error: {exc.status_code} - {exc.message}",
            )
        except Exception as exc:
            logger.error("[%s] Completion request failed: %s", label, exc)
            return CallResult(label=label, finish_reason="exception", error=str(exc))

        usage = _usage_from_response(response)
        if not getattr(response, "choices", None):
            logger.error("[%s] Provider returned no choices", label)
            return CallResult(
                label=label,
                finish_reason="api_error",
                error="Provider returned no output",
                usage=usage,
            )

        choice = response.choices[0]
        finish_reason = choice.finish_reason
        raw_text = choice.message.content or ""
        logger.info(
            "[%s] Completion received (finish_reason=%s, %s chars, %s tokens)",
            label,
            finish_reason,
            len(raw_text),
            usage.total_tokens if usage else "unknown",
        )

        if finish_reason == CONTENT_FILTER:
            logger.warning("[%s] Content filter triggered", label)
            return CallResult(
                label=label,
                finish_reason=CONTENT_FILTER,
                content_filter_triggered=True,
                raw_text=raw_text,
                error="Response blocked by the provider content filter",
                usage=usage,
            )

        cleaned = _strip_code_fences(raw_text)
        if not cleaned:
            return CallResult(
                label=label,
                finish_reason="parse_error",
                raw_text=raw_text,
                error="Model returned empty content",
                usage=usage,
            )

        try:
            content = parse_json_with_repairs(cleaned, label=label)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error("[%s] All JSON parse attempts failed: %s", label, exc)
            logger.error("[%s] Failed content (first 500 chars): %s", label, cleaned[:500])
            return CallResult(
                label=label,
                finish_reason="parse_error",
                raw_text=raw_text,
                error=str(exc),
                usage=usage,
            )

        return CallResult(
            label=label,
            success=True,
            finish_reason=finish_reason,
            content=content,
            raw_text=raw_text,
            usage=usage,
        )

    async def complete_text(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> str:
        """Plain-text completion. Raises on any failure; callers decide the fallback."""
        response = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                **self._chat_completion_kwargs(json_mode=False, max_tokens=max_tokens),
            ),
            timeout=timeout or settings.PREVIEW_TIMEOUT_SECONDS,
        )
        if not getattr(response, "choices", None):
            raise ValueError("Provider returned no output")
        text_response = (response.choices[0].message.content or "").strip()
        if not text_response:
            raise ValueError("Model returned empty content")
        return text_response

    async def transcribe(
        self,
        audio: bytes,
        *,
        model_name: str | None = None,
        timeout: float | None = None,
    ) -> str:
        timeout = timeout or settings.TRANSCRIPTION_TIMEOUT_SECONDS
        logger.info("Transcribing %s bytes of audio", len(audio))
        try:
            response = await asyncio.wait_for(
                self.client.audio.transcriptions.create(
                    model=model_name or settings.MODEL_TRANSCRIPTION,
                    file=("recording.m4a", audio, "audio/m4a"),
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as exc:
            raise TranscriptionError(
                "Transcription timeout - audio may be too long", error_type="timeout"
            ) from exc
        except openai.APIStatusError as exc:
            raise TranscriptionError(
                f"Whisper API error: {exc.status_code} - {exc.message}"
            ) from exc
        except Exception as exc:
            raise TranscriptionError(str(exc), error_type="exception") from exc

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise TranscriptionError("Whisper returned empty transcription")
        logger.info("Transcription received (%s chars)", len(text))
        return text
