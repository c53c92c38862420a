import asyncio
import logging
from typing import Literal

from pydantic import BaseModel, ValidationError

from oxbow.core.config import settings
from oxbow.mirror.artifacts import (
    AssembledMirror,
    CallResult,
    DayOneCoreOutput,
    InvitationOutput,
    PromptSet,
    StandardCoreOutput,
    TokenUsage,
    VerseOutput,
)
from oxbow.mirror.errors import CONTENT_POLICY_MESSAGE, CoreGenerationError
from oxbow.mirror.llm_client import LLMClient

logger = logging.getLogger(__name__)

MirrorKind = Literal["standard", "day_1"]


def core_failure_error(result: CallResult) -> CoreGenerationError:
    if result.content_filter_triggered:
        return CoreGenerationError(
            CONTENT_POLICY_MESSAGE,
            finish_reason="content_filter",
            content_filter_triggered=True,
        )
    reason = result.finish_reason or "unknown"
    detail = result.error or "no details"
    return CoreGenerationError(
        f"Core Mirror generation failed ({reason}): {detail}",
        finish_reason=reason,
    )


class MirrorAssembler:
    """
    Fans the core, verse and invitation prompts out concurrently and merges the results.
    The core call is required; the two verse calls only fill optional fields.
    """

    def __init__(
        self,
        llm: LLMClient,
        *,
        kind: MirrorKind = "standard",
        timeout: float | None = None,
    ):
        self.llm = llm
        self.kind = kind
        self.timeout = timeout or settings.MIRROR_TIMEOUT_SECONDS

    @property
    def _core_schema(self) -> type[StandardCoreOutput] | type[DayOneCoreOutput]:
        return DayOneCoreOutput if self.kind == "day_1" else StandardCoreOutput

    def _optional_payload(self, result: CallResult, schema: type[BaseModel]) -> BaseModel | None:
        if not result.success:
            logger.warning(
                "[%s] Optional call failed (%s); field will be null",
                result.label,
                result.failure_reason,
            )
            return None
        try:
            return schema.model_validate(result.content)
        except ValidationError as exc:
            logger.warning("[%s] Optional call returned an unusable payload: %s", result.label, exc)
            return None

    async def assemble(self, prompts: PromptSet) -> AssembledMirror:
        logger.info("Assembling %s Mirror with 3 parallel calls", self.kind)
        core_result, verse_result, invitation_result = await asyncio.gather(
            self.llm.complete(prompts.core, "core", self.timeout),
            self.llm.complete(prompts.verse, "encouraging_verse", self.timeout),
            self.llm.complete(prompts.invitation, "invitation_to_growth", self.timeout),
        )

        usage = TokenUsage() + core_result.usage + verse_result.usage + invitation_result.usage
        logger.info(
            "Call outcomes: core=%s verse=%s invitation=%s, total tokens %s",
            core_result.finish_reason,
            verse_result.finish_reason,
            invitation_result.finish_reason,
            usage.total_tokens,
        )

        if not core_result.success:
            raise core_failure_error(core_result)

        try:
            core = self._core_schema.model_validate(core_result.content)
        except ValidationError as exc:
            raise CoreGenerationError(
                f"Core Mirror generation failed (invalid_output): {exc}",
                finish_reason="invalid_output",
            ) from exc

        verse = self._optional_payload(verse_result, VerseOutput)
        invitation = self._optional_payload(invitation_result, InvitationOutput)

        biblical = core.screen2_biblical.model_copy(
            update={
                "encouraging_verse": verse.encouraging_verse if verse else None,
                "invitation_to_growth": invitation.invitation_to_growth if invitation else None,
            }
        )

        if isinstance(core, DayOneCoreOutput):
            return AssembledMirror(
                mirror_type="day_1",
                biblical=biblical,
                one_line_summaries=core.one_line_summaries,
                usage=usage,
            )
        return AssembledMirror(
            mirror_type="standard",
            themes=core.screen1_themes,
            biblical=biblical,
            observations=core.screen3_observations,
            usage=usage,
        )


async def generate_with_retry(
    assembler: MirrorAssembler,
    prompts: PromptSet,
    *,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
) -> AssembledMirror:
    """Re-run a whole assembly after a fixed delay when it raises. Same input every attempt."""
    max_retries = settings.MIRROR_MAX_RETRIES if max_retries is None else max_retries
    delay_seconds = settings.MIRROR_RETRY_DELAY_SECONDS if delay_seconds is None else delay_seconds

    last_error: Exception | None = None
    for attempt in range(max_retries + 1):
        if attempt > 0:
            logger.info("Retry attempt %s/%s", attempt, max_retries)
        try:
            return await assembler.assemble(prompts)
        except Exception as exc:
            last_error = exc
            logger.error("Mirror attempt %s failed: %s", attempt + 1, exc)
            if attempt == max_retries:
                raise
            logger.info("Waiting %s seconds before retry...", delay_seconds)
            await asyncio.sleep(delay_seconds)

    # Only reachable with a negative max_retries.
    if last_error:
        raise last_error
    raise RuntimeError("Mirror generation ran zero attempts")
