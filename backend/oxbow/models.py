import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class SpiritualPlace(str, enum.Enum):
    ADVENTURING = "Adventuring"
    BATTLING = "Battling"
    HIDING = "Hiding"
    RESTING = "Resting"
    WORKING = "Working"
    WANDERING = "Wandering"
    GRIEVING = "Grieving"
    CELEBRATING = "Celebrating"


class MirrorType(str, enum.Enum):
    STANDARD = "standard"
    DAY_1 = "day_1"


class GenerationStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Users are created upstream (auth/onboarding); this service only reads them
class UserBase(SQLModel):
    display_name: str | None = Field(default=None, max_length=255)
    group_name: str | None = Field(default=None, max_length=255, index=True)
    push_token: str | None = Field(default=None, max_length=512)


class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# Journals

class JournalEntryBase(SQLModel):
    content: str = Field(default="")
    prompt_text: str | None = Field(default=None)
    transcription_status: str | None = Field(default=None, max_length=32)  # pending, completed, failed


class JournalEntry(JournalEntryBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, index=True, ondelete="CASCADE"
    )
    created_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    mirror_id: uuid.UUID | None = Field(
        default=None, foreign_key="mirror.id", index=True, ondelete="SET NULL"
    )


# Mirrors

class MirrorBase(SQLModel):
    mirror_type: str = Field(default=MirrorType.STANDARD.value, max_length=32)
    screen_1_themes: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    screen_2_biblical: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    screen_3_observations: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    screen_4_suggestions: dict[str, Any] | None = Field(default=None, sa_type=JSON)  # retired, always null
    journal_count: int = Field(default=0, ge=0)
    status: str = Field(default=GenerationStatus.COMPLETED.value, max_length=32)


class MirrorCreate(MirrorBase):
    user_id: uuid.UUID
    generation_started_at: datetime | None = None
    generation_completed_at: datetime | None = None


class Mirror(MirrorBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, index=True, ondelete="CASCADE"
    )
    generation_started_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    generation_completed_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class MirrorPublic(MirrorBase):
    id: uuid.UUID
    user_id: uuid.UUID
    generation_started_at: datetime | None = None
    generation_completed_at: datetime | None = None
    created_at: datetime | None = None


# Generation request audit trail

class MirrorGenerationRequestBase(SQLModel):
    status: str = Field(default=GenerationStatus.PROCESSING.value, max_length=32)  # processing, completed, failed
    error_message: str | None = Field(default=None)


class MirrorGenerationRequest(MirrorGenerationRequestBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, index=True, ondelete="CASCADE"
    )
    requested_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    completed_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    mirror_id: uuid.UUID | None = Field(default=None, foreign_key="mirror.id")


# Day 1 onboarding

class Day1ProgressBase(SQLModel):
    # Stored as the label ("Resting") that the onboarding steps write
    spiritual_place: SpiritualPlace | None = Field(
        default=None,
        sa_type=SAEnum(  # type: ignore
            SpiritualPlace,
            values_callable=lambda places: [place.value for place in places],
            native_enum=False,
            length=32,
        ),
    )
    step_2_journal_id: uuid.UUID | None = Field(default=None, foreign_key="journalentry.id")
    step_3_journal_id: uuid.UUID | None = Field(default=None, foreign_key="journalentry.id")
    mini_mirror_id: uuid.UUID | None = Field(default=None, foreign_key="mirror.id")
    current_step: int = Field(default=1, ge=1, le=5)
    generation_status: str | None = Field(default=None, max_length=32)


class Day1Progress(Day1ProgressBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, unique=True, ondelete="CASCADE"
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
