import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlmodel import Session, col, select

from oxbow.models import (
    Day1Progress,
    GenerationStatus,
    JournalEntry,
    Mirror,
    MirrorCreate,
    MirrorGenerationRequest,
    User,
    get_datetime_utc,
)


def get_user(*, session: Session, user_id: uuid.UUID) -> User | None:
    return session.get(User, user_id)


def get_unassigned_journals(*, session: Session, user_id: uuid.UUID) -> list[JournalEntry]:
    statement = (
        select(JournalEntry)
        .where(JournalEntry.user_id == user_id, col(JournalEntry.mirror_id).is_(None))
        .order_by(col(JournalEntry.created_at).asc())
    )
    return list(session.exec(statement).all())


def get_journals_by_ids(*, session: Session, journal_ids: list[uuid.UUID]) -> list[JournalEntry]:
    statement = select(JournalEntry).where(col(JournalEntry.id).in_(journal_ids))
    return list(session.exec(statement).all())


def user_has_journal_between(
    *, session: Session, user_id: uuid.UUID, start: datetime, end: datetime
) -> bool:
    statement = (
        select(JournalEntry.id)
        .where(
            JournalEntry.user_id == user_id,
            col(JournalEntry.created_at) >= start,
            col(JournalEntry.created_at) <= end,
        )
        .limit(1)
    )
    return session.exec(statement).first() is not None


def link_journals_to_mirror(
    *, session: Session, journal_ids: list[uuid.UUID], mirror_id: uuid.UUID
) -> int:
    """Point still-unassigned journals at a saved Mirror. Returns the number of rows claimed."""
    if not journal_ids:
        return 0
    statement = (
        update(JournalEntry)
        .where(col(JournalEntry.id).in_(journal_ids), col(JournalEntry.mirror_id).is_(None))
        .values(mirror_id=mirror_id)
    )
    result = session.execute(statement)
    session.commit()
    return result.rowcount or 0


def create_mirror(*, session: Session, mirror_in: MirrorCreate) -> Mirror:
    db_mirror = Mirror.model_validate(mirror_in)
    session.add(db_mirror)
    session.commit()
    session.refresh(db_mirror)
    return db_mirror


def create_generation_request(*, session: Session, user_id: uuid.UUID) -> MirrorGenerationRequest:
    db_request = MirrorGenerationRequest(
        user_id=user_id,
        status=GenerationStatus.PROCESSING.value,
        requested_at=get_datetime_utc(),
    )
    session.add(db_request)
    session.commit()
    session.refresh(db_request)
    return db_request


def update_generation_request_status(
    *,
    session: Session,
    request_id: uuid.UUID,
    status: str,
    mirror_id: uuid.UUID | None = None,
    error_message: str | None = None,
) -> MirrorGenerationRequest | None:
    db_request = session.get(MirrorGenerationRequest, request_id)
    if db_request:
        db_request.status = status
        db_request.completed_at = get_datetime_utc()
        if mirror_id is not None:
            db_request.mirror_id = mirror_id
        if error_message is not None:
            db_request.error_message = error_message
        session.add(db_request)
        session.commit()
        session.refresh(db_request)
    return db_request


def has_recent_completed_request(*, session: Session, user_id: uuid.UUID, since: datetime) -> bool:
    statement = (
        select(MirrorGenerationRequest.id)
        .where(
            MirrorGenerationRequest.user_id == user_id,
            MirrorGenerationRequest.status == GenerationStatus.COMPLETED.value,
            col(MirrorGenerationRequest.requested_at) >= since,
        )
        .limit(1)
    )
    return session.exec(statement).first() is not None


def get_day1_progress(*, session: Session, user_id: uuid.UUID) -> Day1Progress | None:
    statement = select(Day1Progress).where(Day1Progress.user_id == user_id)
    return session.exec(statement).first()


def update_day1_progress(
    *, session: Session, db_progress: Day1Progress, progress_in: dict[str, Any]
) -> Day1Progress:
    db_progress.sqlmodel_update(progress_in)
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)
    return db_progress


def list_reminder_recipients(*, session: Session, group_name: str) -> list[User]:
    statement = select(User).where(User.group_name == group_name, col(User.push_token).is_not(None))
    return list(session.exec(statement).all())
