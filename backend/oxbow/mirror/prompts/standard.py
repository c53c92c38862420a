from collections.abc import Sequence

from oxbow.mirror.artifacts import PromptSet
from oxbow.models import JournalEntry

TONE_GUIDELINES = """TONE:
- Warm, encouraging, and non-judgmental.
- Acknowledge struggles without being dismissive.
- Use accessible, modern language while remaining spiritually grounded.
- Be specific to their actual journal content, not generic.
- Balance affirmation with gentle invitations for growth.
- Sound like someone who has chosen their words carefully
- Maintain warmth and patience, but with measured, efficient phrasing - no filler"""


def format_entry_date(entry: JournalEntry) -> str:
    created = entry.created_at
    return f"{created.month}/{created.day}/{created.year}"


def format_journal_entries(journal_entries: Sequence[JournalEntry]) -> str:
    lines: list[str] = []
    for index, entry in enumerate(journal_entries, start=1):
        date = format_entry_date(entry)
        if entry.prompt_text:
            lines.append(
                f"Entry {index} ({date}): In response to '{entry.prompt_text}', "
                f"the user wrote: {entry.content}"
            )
        else:
            lines.append(f"Entry {index} ({date}): {entry.content}")
    return "\n\n".join(lines)


def build_core_prompt(journal_entries: Sequence[JournalEntry]) -> str:
    journal_text = format_journal_entries(journal_entries)
    return f"""You are a wise, compassionate spiritual director analyzing someone's journal entries to provide encouraging spiritual formation insights.

JOURNAL ENTRIES TO ANALYZE:
{journal_text}

Generate themes, biblical parallel, and observations in JSON format:

{{
  "screen1_themes": {{
    "title": "Themes",
    "subtitle": "Patterns across your journals",
    "themes": [
      {{
        "name": "Theme Name",
        "description": "Brief description of this theme",
        "frequency": "Present in journals from [actual dates from entries]"
      }}
    ]
  }},
  "screen2_biblical": {{
    "title": "Biblical Mirror",
    "subtitle": "Pattern matches in Scripture",
    "parallel_story": {{
      "character": "Biblical character name",
      "story": "Brief story summary that parallels their experience",
      "connection": "How this connects to their journey"
    }}
  }},
  "screen3_observations": {{
    "title": "Observations",
    "subtitle": "Patterns in your framing",
    "self_perception": {{
      "observation": "How they tend to view themselves spiritually, with specific journal date references"
    }},
    "god_perception": {{
      "observation": "How they tend to relate to or view God, with specific journal date references"
    }},
    "others_perception": {{
      "observation": "How they tend to view or relate to others, with specific journal date references"
    }},
    "growth_areas": {{
      "observation": "Pattern they may not be aware of that could benefit from attention, with journal date references"
    }}
  }}
}}

REQUIREMENTS:
- Exactly 4 themes maximum
- Use actual journal dates in frequency references
- Observations only - no recommendations or growth edges
- Omit observation sections if no clear evidence
- Properly formatted JSON strings

{TONE_GUIDELINES}

Generate only JSON."""


def build_encouraging_verse_prompt(journal_entries: Sequence[JournalEntry]) -> str:
    journal_text = format_journal_entries(journal_entries)
    return f"""You are a compassionate spiritual director who has analyzed the user's journal entries and is providing an encouraging relevant Bible verse that connects with the user's experience.

JOURNAL ENTRIES:
{journal_text}

Generate an encouraging Bible verse in JSON format:

{{
  "encouraging_verse": {{
    "reference": "Bible verse reference",
    "text": "Full verse text",
    "application": "How this verse speaks to their specific situation"
  }}
}}

IMPORTANT REQUIREMENTS:
- Application should connect to their journal entries
- Keep summaries to 10-12 words maximum each
- Ensure all JSON strings are properly formatted (no unescaped quotes or newlines)

{TONE_GUIDELINES}

Generate only JSON."""


def build_invitation_to_growth_prompt(journal_entries: Sequence[JournalEntry]) -> str:
    journal_text = format_journal_entries(journal_entries)
    return f"""You are a wise, compassionate spiritual director analyzing someone's journal entries and offering a relevant and patient encouragement into growth from the Bible.

JOURNAL ENTRIES:
{journal_text}

Generate a reflective invitation in JSON format:

{{
  "invitation_to_growth": {{
    "reference": "Bible verse reference",
    "text": "Full verse text",
    "invitation": "Gentle invitation for deeper reflection. Not prescriptive, but exploratory."
  }}
}}

IMPORTANT REQUIREMENTS:
- Application should connect to their journal entries
- Keep summaries to 10-12 words maximum each
- Ensure all JSON strings are properly formatted (no unescaped quotes or newlines)

{TONE_GUIDELINES}

Generate only JSON."""


def build_standard_prompts(journal_entries: Sequence[JournalEntry]) -> PromptSet:
    return PromptSet(
        core=build_core_prompt(journal_entries),
        verse=build_encouraging_verse_prompt(journal_entries),
        invitation=build_invitation_to_growth_prompt(journal_entries),
    )
