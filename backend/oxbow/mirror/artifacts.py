from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "TokenUsage | None") -> "TokenUsage":
        if other is None:
            return self
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class CallResult(BaseModel):
    """Outcome of a single completion call. Provider faults are tagged here, never raised."""
    label: str
    success: bool = False
    finish_reason: str | None = None
    content: dict[str, Any] | None = None
    raw_text: str | None = None
    error: str | None = None
    status_code: int | None = None
    content_filter_triggered: bool = False
    usage: TokenUsage | None = None

    @property
    def failure_reason(self) -> str:
        return self.error or self.finish_reason or "unknown"


class PromptSet(BaseModel):
    core: str
    verse: str
    invitation: str


# Screen payloads. Unknown keys the model emits are preserved.

class _Screen(BaseModel):
    model_config = ConfigDict(extra="allow")


class Theme(_Screen):
    name: str = ""
    description: str = ""
    frequency: str | None = None


class ThemesScreen(_Screen):
    title: str = "Themes"
    subtitle: str | None = "Patterns across your journals"
    themes: list[Theme] = Field(default_factory=list)


class ParallelStory(_Screen):
    character: str
    story: str = ""
    connection: str = ""


class EncouragingVerse(_Screen):
    reference: str
    text: str = ""
    application: str = ""


class InvitationToGrowth(_Screen):
    reference: str
    text: str = ""
    invitation: str = ""


class BiblicalScreen(_Screen):
    title: str = "Biblical Mirror"
    subtitle: str | None = None
    parallel_story: ParallelStory
    encouraging_verse: EncouragingVerse | None = None
    invitation_to_growth: InvitationToGrowth | None = None


class Observation(_Screen):
    observation: str


class ObservationsScreen(_Screen):
    title: str = "Observations"
    subtitle: str | None = "Patterns in your framing"
    self_perception: Observation | None = None
    god_perception: Observation | None = None
    others_perception: Observation | None = None
    growth_areas: Observation | None = None


class OneLineSummaries(_Screen):
    spiritual_journey: str = ""
    prayer_focus: str = ""


# Raw shapes returned by each of the three calls

class StandardCoreOutput(_Screen):
    screen1_themes: ThemesScreen
    screen2_biblical: BiblicalScreen
    screen3_observations: ObservationsScreen


class DayOneCoreOutput(_Screen):
    screen2_biblical: BiblicalScreen
    one_line_summaries: OneLineSummaries


class VerseOutput(_Screen):
    encouraging_verse: EncouragingVerse


class InvitationOutput(_Screen):
    invitation_to_growth: InvitationToGrowth


class AssembledMirror(BaseModel):
    """Merged result of one assembler attempt."""
    mirror_type: Literal["standard", "day_1"] = "standard"
    themes: ThemesScreen | None = None
    biblical: BiblicalScreen
    observations: ObservationsScreen | None = None
    one_line_summaries: OneLineSummaries | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)


class BiblicalProfile(_Screen):
    character: str
    connection: str = ""


class OnboardingPreview(_Screen):
    biblical_profile: BiblicalProfile
    encouraging_verse: EncouragingVerse


FALLBACK_PREVIEW = OnboardingPreview(
    biblical_profile=BiblicalProfile(
        character="David",
        connection=(
            "Like David in the Psalms, you're bringing your honest thoughts and feelings to God. "
            "David didn't hide his struggles or doubts - he brought them into the light through "
            "writing and prayer. Your willingness to reflect like this is already a step toward "
            "spiritual growth."
        ),
    ),
    encouraging_verse=EncouragingVerse(
        reference="Psalm 139:23-24",
        text=(
            "Search me, God, and know my heart; test me and know my anxious thoughts. "
            "See if there is any offensive way in me, and lead me in the way everlasting."
        ),
        application=(
            "This verse reminds us that honest self-reflection before God is not just acceptable - "
            "it's invited. As you continue journaling, you're creating space for God to reveal "
            "patterns, growth areas, and His leading in your life."
        ),
    ),
)
