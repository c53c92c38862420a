"""Canned model payloads, scripted completion clients and row builders shared by the tests."""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from oxbow import models  # noqa: F401
from oxbow.mirror.artifacts import CallResult, TokenUsage
from oxbow.models import JournalEntry, User

CORE_STANDARD: dict[str, Any] = {
    "screen1_themes": {
        "title": "Themes",
        "subtitle": "Patterns across your journals",
        "themes": [
            {"name": "Trust", "description": "Learning to rely on God", "frequency": "Present in 4 entries"},
        ],
    },
    "screen2_biblical": {
        "title": "Biblical Mirror",
        "subtitle": "Pattern matches in Scripture",
        "parallel_story": {
            "character": "Moses",
            "story": "Moses doubted his voice before Pharaoh.",
            "connection": "You also question whether you are enough.",
        },
    },
    "screen3_observations": {
        "title": "Observations",
        "self_perception": {"observation": "You describe yourself as tired."},
        "god_perception": {"observation": "You see God as patient."},
    },
}

CORE_DAY_ONE: dict[str, Any] = {
    "screen2_biblical": {
        "title": "Biblical Mirror",
        "parallel_story": {
            "character": "Elijah",
            "story": "Elijah rested under the broom tree.",
            "connection": "Your season of resting mirrors his.",
        },
    },
    "one_line_summaries": {
        "spiritual_journey": "A busy job pushed you toward rest.",
        "prayer_focus": "You mostly pray for your family.",
    },
}

VERSE: dict[str, Any] = {
    "encouraging_verse": {
        "reference": "Isaiah 41:10",
        "text": "So do not fear, for I am with you.",
        "application": "God is with you in the waiting.",
    }
}

INVITATION: dict[str, Any] = {
    "invitation_to_growth": {
        "reference": "Psalm 46:10",
        "text": "Be still, and know that I am God.",
        "invitation": "Where might stillness meet you this week?",
    }
}


def ok_result(label: str, content: dict[str, Any], tokens: int = 10) -> CallResult:
    return CallResult(
        label=label,
        success=True,
        finish_reason="stop",
        content=content,
        raw_text="{}",
        usage=TokenUsage(prompt_tokens=tokens, completion_tokens=tokens, total_tokens=tokens * 2),
    )


def failed_result(
    label: str, finish_reason: str = "api_error", error: str = "OpenAI API error: 500 - boom"
) -> CallResult:
    return CallResult(
        label=label,
        finish_reason=finish_reason,
        content_filter_triggered=finish_reason == "content_filter",
        error=error,
    )


class ScriptedLLM:
    """Stands in for LLMClient.complete; results are queued per call label."""

    def __init__(self, script: dict[str, list[CallResult]]):
        self.script = {label: list(results) for label, results in script.items()}
        self.calls: list[str] = []
        self.prompts: dict[str, str] = {}

    async def complete(self, prompt, label, timeout=None, *, max_tokens=None) -> CallResult:
        self.calls.append(label)
        self.prompts[label] = prompt
        queue = self.script[label]
        return queue.pop(0) if len(queue) > 1 else queue[0]


class FakeLLMClient(ScriptedLLM):
    """Scripted client that also covers transcription and plain-text completion."""

    def __init__(
        self,
        script: dict[str, list[CallResult]] | None = None,
        *,
        transcript: str = "I felt peace on my walk today.",
        text: str = "Trust",
        error: Exception | None = None,
    ):
        super().__init__(script or {})
        self.transcript = transcript
        self.text = text
        self.error = error
        self.factory_kwargs: dict[str, Any] = {}

    async def transcribe(self, audio: bytes, *, model_name=None, timeout=None) -> str:
        if self.error:
            raise self.error
        self.audio = audio
        return self.transcript

    async def complete_text(self, prompt: str, *, max_tokens=None, timeout=None) -> str:
        if self.error:
            raise self.error
        self.prompts["text"] = prompt
        return self.text

    def factory(self, **kwargs: Any) -> "FakeLLMClient":
        self.factory_kwargs = kwargs
        return self


def memory_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


def add_user(
    session: Session, group_name: str | None = None, push_token: str | None = None
) -> User:
    user = User(display_name="Sam", group_name=group_name, push_token=push_token)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add_journals(
    session: Session,
    user_id: uuid.UUID,
    count: int,
    *,
    start: datetime | None = None,
    **fields: Any,
) -> list[JournalEntry]:
    start = start or datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)
    journals = [
        JournalEntry(
            user_id=user_id,
            content=f"Journal entry number {index + 1}",
            created_at=start + timedelta(days=index),
            **fields,
        )
        for index in range(count)
    ]
    session.add_all(journals)
    session.commit()
    for journal in journals:
        session.refresh(journal)
    return journals


def standard_script() -> dict[str, list[CallResult]]:
    return {
        "core": [ok_result("core", CORE_STANDARD)],
        "encouraging_verse": [ok_result("encouraging_verse", VERSE)],
        "invitation_to_growth": [ok_result("invitation_to_growth", INVITATION)],
    }


def day_one_script() -> dict[str, list[CallResult]]:
    return {
        "core": [ok_result("core", CORE_DAY_ONE)],
        "encouraging_verse": [ok_result("encouraging_verse", VERSE)],
        "invitation_to_growth": [ok_result("invitation_to_growth", INVITATION)],
    }
