from oxbow.mirror.artifacts import PromptSet
from oxbow.mirror.prompts.standard import TONE_GUIDELINES
from oxbow.models import JournalEntry, SpiritualPlace

PLACE_OPTIONS = ", ".join(place.value for place in SpiritualPlace)

QUESTION_2 = "What in your life and experience shaped your choice of place?"
QUESTION_3 = "When you pray, what do you talk to God about most often?"


def sanitize_answer(text: str) -> str:
    """Make a spoken answer safe to embed inside the JSON-shaped prompt."""
    return (
        (text or "")
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", " ")
        .replace("\r", "")
        .replace("\t", " ")
        .strip()
    )


def _answers_block(spiritual_place: str, journal_2: JournalEntry, journal_3: JournalEntry) -> str:
    return f"""SPIRITUAL PLACE: {spiritual_place}
(User chose "{spiritual_place}" from options: {PLACE_OPTIONS})

QUESTION 2: "{QUESTION_2}"
ANSWER 2: {sanitize_answer(journal_2.content)}

QUESTION 3: "{QUESTION_3}"
ANSWER 3: {sanitize_answer(journal_3.content)}"""


def build_core_prompt(spiritual_place: str, journal_2: JournalEntry, journal_3: JournalEntry) -> str:
    answers = _answers_block(spiritual_place, journal_2, journal_3)
    return f"""You are a wise, compassionate spiritual director. A new directee is helping you understand where they are in their journey and you're trying to give them a vision for their spiritual growth.

CRITICAL: You MUST respond with valid JSON. Escape all quotes in strings using \\" and ensure no unescaped newlines.

{answers}

Generate a biblical parallel and one-line summaries in JSON format:

{{
  "screen2_biblical": {{
    "title": "Biblical Mirror",
    "subtitle": "Your story reflected in Scripture",
    "parallel_story": {{
      "character": "Biblical character name (e.g., David, Peter, Ruth)",
      "story": "2-3 sentence story that parallels their experience. Reference their spiritual place ({spiritual_place}) and their answers.",
      "connection": "How this biblical story connects to their current journey"
    }}
  }},
  "one_line_summaries": {{
    "spiritual_journey": "One concise sentence summarizing their answer to question 2 (about what shaped their choice)",
    "prayer_focus": "One concise sentence summarizing their answer to question 3 (about prayer topics)"
  }}
}}

IMPORTANT REQUIREMENTS:
- Reference their spiritual place ({spiritual_place}) throughout the response
- Be specific to their actual answers, not generic
- Keep summaries to 10-12 words maximum each
- Ensure all JSON strings are properly formatted (no unescaped quotes or newlines)

{TONE_GUIDELINES}

Generate only JSON."""


def build_encouraging_verse_prompt(
    spiritual_place: str, journal_2: JournalEntry, journal_3: JournalEntry
) -> str:
    answers = _answers_block(spiritual_place, journal_2, journal_3)
    return f"""You are a compassionate spiritual director providing encouragement to a new directee.

{answers}

Generate an encouraging Bible verse in JSON format:

{{
  "encouraging_verse": {{
    "reference": "Bible verse reference",
    "text": "Full verse text",
    "application": "How this verse speaks to their specific situation. Reference {spiritual_place} if relevant."
  }}
}}

IMPORTANT REQUIREMENTS:
- Be specific to their actual answers, not generic
- Keep summaries to 10-12 words maximum each
- Ensure all JSON strings are properly formatted (no unescaped quotes or newlines)

{TONE_GUIDELINES}

Generate only JSON."""


def build_invitation_to_growth_prompt(
    spiritual_place: str, journal_2: JournalEntry, journal_3: JournalEntry
) -> str:
    answers = _answers_block(spiritual_place, journal_2, journal_3)
    return f"""You are a spiritual director inviting deeper reflection for a new directee.

{answers}

Generate a reflective invitation in JSON format:

{{
  "invitation_to_growth": {{
    "reference": "Bible verse reference",
    "text": "Full verse text",
    "invitation": "Gentle invitation for deeper reflection. Not prescriptive, but exploratory."
  }}
}}

IMPORTANT REQUIREMENTS:
- Be specific to their actual answers, not generic
- Keep summaries to 10-12 words maximum each
- Ensure all JSON strings are properly formatted (no unescaped quotes or newlines)

{TONE_GUIDELINES}

Generate only JSON."""


def build_day_one_prompts(
    spiritual_place: str, journal_2: JournalEntry, journal_3: JournalEntry
) -> PromptSet:
    return PromptSet(
        core=build_core_prompt(spiritual_place, journal_2, journal_3),
        verse=build_encouraging_verse_prompt(spiritual_place, journal_2, journal_3),
        invitation=build_invitation_to_growth_prompt(spiritual_place, journal_2, journal_3),
    )
