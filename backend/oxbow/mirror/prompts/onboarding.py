def build_preview_prompt(journal_content: str) -> str:
    return f"""You are a wise, compassionate spiritual director. Someone has just written their first spiritual journal entry. Create a brief encouraging preview to show them what ongoing journaling might reveal.

THEIR JOURNAL ENTRY:
{journal_content}

Generate a JSON response with this structure:

{{
  "biblical_profile": {{
    "character": "Biblical character name that resonates with their entry",
    "connection": "2-3 sentences connecting their spiritual journey to this biblical figure"
  }},
  "encouraging_verse": {{
    "reference": "Bible verse reference",
    "text": "Full verse text",
    "application": "2-3 sentences about how this verse speaks to their current situation"
  }}
}}

IMPORTANT:
- Be specific to their actual journal content
- Warm, encouraging, non-judgmental tone
- Find genuine hope even in struggles
- Use accessible, modern language
- Keep it brief - this is just a preview

Generate only the JSON response with no additional text."""


def build_focus_theme_prompt(focus_text: str) -> str:
    return (
        f'Extract a 1-2 word theme from this spiritual focus: "{focus_text}".\n'
        'Return ONLY the theme word(s), nothing else. Examples: "Trust", "Purpose", '
        '"Healing", "Community", "Growth", "Peace", "Love"'
    )
