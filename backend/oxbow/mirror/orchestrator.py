import logging
import uuid
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from oxbow import crud
from oxbow.core.config import settings
from oxbow.mirror.artifacts import AssembledMirror, OneLineSummaries, OnboardingPreview
from oxbow.mirror.assembler import MirrorAssembler, core_failure_error, generate_with_retry
from oxbow.mirror.errors import (
    CoreGenerationError,
    PersistenceError,
    PreconditionError,
    RateLimitError,
)
from oxbow.mirror.llm_client import LLMClient
from oxbow.mirror.prompts.day_one import build_day_one_prompts
from oxbow.mirror.prompts.onboarding import build_preview_prompt
from oxbow.mirror.prompts.standard import build_standard_prompts
from oxbow.models import (
    GenerationStatus,
    JournalEntry,
    Mirror,
    MirrorCreate,
    MirrorPublic,
    MirrorType,
    TranscriptionStatus,
    User,
    get_datetime_utc,
)

logger = logging.getLogger(__name__)


class StandardMirrorResult(BaseModel):
    mirror: MirrorPublic
    journals_used: int
    request_id: uuid.UUID


class DayOneMirrorResult(BaseModel):
    mirror: MirrorPublic
    summaries: OneLineSummaries


def sanitize_content(value: Any) -> Any:
    """Strip NUL characters from every string leaf; Postgres text/jsonb cannot store them."""
    if isinstance(value, str):
        return value.replace("\u0000", "")
    if isinstance(value, list):
        return [sanitize_content(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_content(item) for key, item in value.items()}
    return value


def mirror_threshold_for(user: User) -> int:
    if user.group_name == settings.MENS_GROUP_NAME:
        return settings.MENS_GROUP_THRESHOLD
    return settings.MIRROR_THRESHOLD


def _dump_screen(screen: BaseModel | None) -> dict[str, Any] | None:
    if screen is None:
        return None
    return sanitize_content(screen.model_dump(mode="json"))


def _rollback_session_safely(session: Session) -> None:
    try:
        session.rollback()
    except Exception as exc:
        logger.warning("Session rollback failed: %s", exc)


def _update_request_status_safely(
    session: Session,
    request_id: uuid.UUID,
    status: str,
    *,
    mirror_id: uuid.UUID | None = None,
    error_message: str | None = None,
) -> None:
    try:
        crud.update_generation_request_status(
            session=session,
            request_id=request_id,
            status=status,
            mirror_id=mirror_id,
            error_message=error_message,
        )
    except Exception as exc:
        _rollback_session_safely(session)
        logger.warning("Failed to update generation request %s to %s: %s", request_id, status, exc)


def _link_journals_safely(session: Session, journals: list[JournalEntry], mirror_id: uuid.UUID) -> None:
    journal_ids = [journal.id for journal in journals]
    try:
        linked = crud.link_journals_to_mirror(
            session=session, journal_ids=journal_ids, mirror_id=mirror_id
        )
    except Exception as exc:
        # The Mirror is already saved; an unlinked journal is recoverable.
        _rollback_session_safely(session)
        logger.warning("Failed to link journals to Mirror %s: %s", mirror_id, exc)
        return
    if linked != len(journal_ids):
        logger.warning(
            "Linked %s of %s journals to Mirror %s; the rest were claimed concurrently",
            linked,
            len(journal_ids),
            mirror_id,
        )
    else:
        logger.info("Linked %s journals to Mirror %s", linked, mirror_id)


def _save_mirror(session: Session, mirror_in: MirrorCreate) -> Mirror:
    try:
        return crud.create_mirror(session=session, mirror_in=mirror_in)
    except SQLAlchemyError as exc:
        _rollback_session_safely(session)
        logger.error("Failed to save Mirror: %s", exc)
        raise PersistenceError("Failed to save Mirror") from exc


def _check_rate_limit(session: Session, user_id: uuid.UUID) -> None:
    hours = settings.MIRROR_RATE_LIMIT_HOURS
    if hours <= 0:
        return
    since = get_datetime_utc() - timedelta(hours=hours)
    if crud.has_recent_completed_request(session=session, user_id=user_id, since=since):
        logger.info("Rate limit exceeded for user %s", user_id)
        raise RateLimitError(
            f"You can only generate one Mirror per {hours} hours. Please try again later."
        )


async def generate_standard_mirror(
    session: Session,
    user_id: uuid.UUID,
    llm: LLMClient,
) -> StandardMirrorResult:
    """
    validating -> processing -> completed | failed for a full Mirror.
    Precondition failures raise before any request row exists.
    """
    logger.info("Generating Mirror for user %s", user_id)

    user = crud.get_user(session=session, user_id=user_id)
    if user is None:
        raise PreconditionError("User not found")

    _check_rate_limit(session, user_id)

    threshold = mirror_threshold_for(user)
    journals = crud.get_unassigned_journals(session=session, user_id=user_id)
    if len(journals) < threshold:
        logger.info("Insufficient journals: %s/%s", len(journals), threshold)
        raise PreconditionError(
            f"Need at least {threshold} journals for Mirror generation. "
            f"Currently have {len(journals)}."
        )
    logger.info("User group %s, threshold %s, found %s journals", user.group_name, threshold, len(journals))

    try:
        request = crud.create_generation_request(session=session, user_id=user_id)
    except SQLAlchemyError as exc:
        _rollback_session_safely(session)
        logger.error("Failed to create generation request: %s", exc)
        raise PersistenceError("Failed to create generation request") from exc
    logger.info("Generation request %s created", request.id)

    try:
        assembler = MirrorAssembler(llm, kind="standard", timeout=settings.MIRROR_TIMEOUT_SECONDS)
        assembled = await generate_with_retry(assembler, build_standard_prompts(journals))

        mirror = _save_mirror(
            session,
            MirrorCreate(
                user_id=user_id,
                mirror_type=MirrorType.STANDARD.value,
                screen_1_themes=_dump_screen(assembled.themes),
                screen_2_biblical=_dump_screen(assembled.biblical),
                screen_3_observations=_dump_screen(assembled.observations),
                screen_4_suggestions=None,
                journal_count=len(journals),
                status=GenerationStatus.COMPLETED.value,
                generation_started_at=request.requested_at,
                generation_completed_at=get_datetime_utc(),
            ),
        )
        logger.info("Mirror %s saved (%s tokens)", mirror.id, assembled.usage.total_tokens)
    except Exception as exc:
        logger.error("Mirror generation failed for request %s: %s", request.id, exc)
        _update_request_status_safely(
            session,
            request.id,
            GenerationStatus.FAILED.value,
            error_message=str(exc),
        )
        raise

    _link_journals_safely(session, journals, mirror.id)
    _update_request_status_safely(
        session,
        request.id,
        GenerationStatus.COMPLETED.value,
        mirror_id=mirror.id,
    )

    return StandardMirrorResult(
        mirror=MirrorPublic.model_validate(mirror),
        journals_used=len(journals),
        request_id=request.id,
    )


def _load_day_one_journals(
    session: Session, user_id: uuid.UUID
) -> tuple[str, JournalEntry, JournalEntry, Any]:
    progress = crud.get_day1_progress(session=session, user_id=user_id)
    if progress is None:
        raise PreconditionError("Day 1 progress not found")
    if not progress.spiritual_place or not progress.step_2_journal_id or not progress.step_3_journal_id:
        raise PreconditionError("Day 1 flow not complete - missing data")

    journals = crud.get_journals_by_ids(
        session=session,
        journal_ids=[progress.step_2_journal_id, progress.step_3_journal_id],
    )
    by_id = {journal.id: journal for journal in journals}
    journal_2 = by_id.get(progress.step_2_journal_id)
    journal_3 = by_id.get(progress.step_3_journal_id)
    if journal_2 is None or journal_3 is None:
        raise PreconditionError("Journals not found")

    completed = TranscriptionStatus.COMPLETED.value
    if journal_2.transcription_status != completed or journal_3.transcription_status != completed:
        logger.error(
            "Transcriptions not complete: step2=%s step3=%s",
            journal_2.transcription_status,
            journal_3.transcription_status,
        )
        raise PreconditionError("Transcriptions not yet complete")

    place = getattr(progress.spiritual_place, "value", progress.spiritual_place)
    return place, journal_2, journal_3, progress


async def generate_day_one_mirror(
    session: Session,
    user_id: uuid.UUID,
    llm: LLMClient,
) -> DayOneMirrorResult:
    """Mini-Mirror from the spiritual place and the two Day 1 voice journals."""
    logger.info("Generating Day 1 mini-Mirror for user %s", user_id)
    spiritual_place, journal_2, journal_3, progress = _load_day_one_journals(session, user_id)
    logger.info("Day 1 progress loaded (place=%s)", spiritual_place)

    started_at = get_datetime_utc()
    assembler = MirrorAssembler(llm, kind="day_1", timeout=settings.MIRROR_TIMEOUT_SECONDS)
    assembled: AssembledMirror = await generate_with_retry(
        assembler, build_day_one_prompts(spiritual_place, journal_2, journal_3)
    )

    summaries = OneLineSummaries.model_validate(
        sanitize_content((assembled.one_line_summaries or OneLineSummaries()).model_dump(mode="json"))
    )
    mirror = _save_mirror(
        session,
        MirrorCreate(
            user_id=user_id,
            mirror_type=MirrorType.DAY_1.value,
            screen_1_themes=None,
            screen_2_biblical=_dump_screen(assembled.biblical),
            screen_3_observations=None,
            screen_4_suggestions=None,
            journal_count=2,
            status=GenerationStatus.COMPLETED.value,
            generation_started_at=started_at,
            generation_completed_at=get_datetime_utc(),
        ),
    )
    logger.info("Mini-Mirror %s saved (%s tokens)", mirror.id, assembled.usage.total_tokens)

    _link_journals_safely(session, [journal_2, journal_3], mirror.id)
    try:
        crud.update_day1_progress(
            session=session,
            db_progress=progress,
            progress_in={
                "mini_mirror_id": mirror.id,
                "generation_status": GenerationStatus.COMPLETED.value,
                "current_step": 5,
            },
        )
    except Exception as exc:
        _rollback_session_safely(session)
        logger.warning("Failed to update Day 1 progress for user %s: %s", user_id, exc)

    return DayOneMirrorResult(mirror=MirrorPublic.model_validate(mirror), summaries=summaries)


async def generate_onboarding_preview(journal_content: str, llm: LLMClient) -> OnboardingPreview:
    """Single-call preview for a first journal entry. Callers substitute a fallback on failure."""
    if not journal_content or not journal_content.strip():
        raise PreconditionError("journalContent is required")

    logger.info("Generating onboarding preview for journal (%s chars)", len(journal_content))
    result = await llm.complete(
        build_preview_prompt(journal_content),
        "onboarding_preview",
        settings.PREVIEW_TIMEOUT_SECONDS,
        max_tokens=settings.PREVIEW_MAX_COMPLETION_TOKENS,
    )
    if not result.success:
        raise core_failure_error(result)

    try:
        return OnboardingPreview.model_validate(result.content)
    except ValidationError as exc:
        raise CoreGenerationError(
            f"Preview generation failed (invalid_output): {exc}",
            finish_reason="invalid_output",
        ) from exc
