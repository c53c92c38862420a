import uuid
from datetime import datetime, timezone

from oxbow.mirror.prompts.day_one import build_day_one_prompts, sanitize_answer
from oxbow.mirror.prompts.onboarding import build_focus_theme_prompt, build_preview_prompt
from oxbow.mirror.prompts.standard import build_standard_prompts, format_journal_entries
from oxbow.models import JournalEntry


def _journal(content: str, prompt_text: str | None = None, day: int = 3) -> JournalEntry:
    return JournalEntry(
        user_id=uuid.uuid4(),
        content=content,
        prompt_text=prompt_text,
        created_at=datetime(2026, 3, day, 15, 0, tzinfo=timezone.utc),
    )


def test_free_form_and_guided_entries_are_numbered_with_dates():
    text = format_journal_entries(
        [
            _journal("I felt anxious about work."),
            _journal("My brother.", prompt_text="Who do you need to forgive?", day=14),
        ]
    )

    assert "Entry 1 (3/3/2026): I felt anxious about work." in text
    assert "Entry 2 (3/14/2026): In response to 'Who do you need to forgive?', the user wrote: My brother." in text


def test_standard_prompts_share_journals_and_ask_for_distinct_shapes():
    prompts = build_standard_prompts([_journal("Grateful for rain.")])

    for prompt in (prompts.core, prompts.verse, prompts.invitation):
        assert "Grateful for rain." in prompt
        assert prompt.rstrip().endswith("Generate only JSON.")
    assert '"screen1_themes"' in prompts.core
    assert '"screen3_observations"' in prompts.core
    assert '"encouraging_verse"' in prompts.verse
    assert '"invitation_to_growth"' in prompts.invitation


def test_standard_prompts_are_deterministic():
    journals = [_journal("Same text.")]
    assert build_standard_prompts(journals) == build_standard_prompts(journals)


def test_sanitize_answer_escapes_for_json_embedding():
    raw = 'He said "wait"\\then\nleft\r\tquietly  '
    assert sanitize_answer(raw) == 'He said \\"wait\\"\\\\then left quietly'
    assert sanitize_answer(None) == ""


def test_day_one_prompts_embed_place_and_sanitized_answers():
    journal_2 = _journal('My dad\'s "tough love"\nshaped me.')
    journal_3 = _journal("Mostly my kids.")

    prompts = build_day_one_prompts("Resting", journal_2, journal_3)

    assert "SPIRITUAL PLACE: Resting" in prompts.core
    assert 'ANSWER 2: My dad\'s \\"tough love\\" shaped me.' in prompts.core
    assert "ANSWER 3: Mostly my kids." in prompts.verse
    assert '"one_line_summaries"' in prompts.core
    assert "Adventuring, Battling, Hiding, Resting" in prompts.invitation


def test_onboarding_prompts_embed_user_text():
    assert "Lord, help me trust you." in build_preview_prompt("Lord, help me trust you.")
    focus = build_focus_theme_prompt("learning to rest")
    assert '"learning to rest"' in focus
    assert "ONLY the theme" in focus
