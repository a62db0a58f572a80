"""Typed content payloads, one variant per phase."""

from typing import ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import InvalidContentError
from .phase import Phase, to_phase


def _shorten(text: str, max_chars: int = 120) -> str:
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    return text[:max_chars - 3].rstrip() + "..."


class _Content(BaseModel):
    model_config = ConfigDict(extra="forbid")

    phase: ClassVar[Phase]

    def is_empty(self) -> bool:
        raise NotImplementedError

    def to_text(self) -> str:
        """Full plain-text rendering, used for prompts and compliance checks."""
        raise NotImplementedError

    def summary_text(self) -> str:
        """Short one-line description for before/after previews."""
        if self.is_empty():
            return "(empty)"
        return _shorten(self.to_text())

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class BrainstormContent(_Content):
    phase: ClassVar[Phase] = Phase.BRAINSTORM

    transcript: str = ""
    summary: str = ""

    def is_empty(self) -> bool:
        return not (self.transcript.strip() or self.summary.strip())

    def to_text(self) -> str:
        if self.summary and self.transcript:
            return f"{self.summary}\n\n{self.transcript}"
        return self.summary or self.transcript


class OneLineContent(_Content):
    phase: ClassVar[Phase] = Phase.ONE_LINE

    summary: str = ""
    themes: List[str] = Field(default_factory=list)
    characters: List[str] = Field(default_factory=list)
    genre: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.summary.strip()

    def to_text(self) -> str:
        parts = [self.summary]
        if self.genre:
            parts.append(f"Genre: {self.genre}")
        if self.themes:
            parts.append(f"Themes: {', '.join(self.themes)}")
        if self.characters:
            parts.append(f"Characters: {', '.join(self.characters)}")
        return "\n".join(parts)

    def summary_text(self) -> str:
        if self.is_empty():
            return "(empty)"
        return _shorten(self.summary)


class SceneDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    title: str = ""
    description: str = ""
    purpose: str = ""
    order: int = Field(default=0, ge=0)
    characters: List[str] = Field(default_factory=list)
    stakes: str = ""
    tension_level: Optional[int] = Field(default=None, ge=1, le=10)

    def mention_text(self) -> str:
        return " ".join(
            [self.title, self.description, self.purpose, self.stakes, " ".join(self.characters)]
        )


class SceneLinesContent(_Content):
    phase: ClassVar[Phase] = Phase.SCENE_LINES

    scenes: List[SceneDescriptor] = Field(default_factory=list)

    def ordered_scenes(self) -> List[SceneDescriptor]:
        return sorted(self.scenes, key=lambda s: s.order)

    def is_empty(self) -> bool:
        return not self.scenes

    def to_text(self) -> str:
        lines = []
        for scene in self.ordered_scenes():
            line = f"{scene.order}. {scene.title}: {scene.description}"
            if scene.purpose:
                line += f" (purpose: {scene.purpose})"
            lines.append(line)
        return "\n".join(lines)

    def summary_text(self) -> str:
        if self.is_empty():
            return "(empty)"
        titles = ", ".join(s.title or s.id for s in self.ordered_scenes())
        return _shorten(f"{len(self.scenes)} scenes: {titles}")


class BeatDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    description: str = ""
    characters: List[str] = Field(default_factory=list)
    emotions: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)


class SceneBeatsContent(_Content):
    """Beats keyed by the index of the scene in the ordered scene list."""

    phase: ClassVar[Phase] = Phase.SCENE_BEATS

    beats: Dict[int, List[BeatDescriptor]] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any(self.beats.values())

    def all_beats(self) -> List[BeatDescriptor]:
        return [beat for index in sorted(self.beats) for beat in self.beats[index]]

    def to_text(self) -> str:
        lines = []
        for index in sorted(self.beats):
            lines.append(f"Scene {index + 1}:")
            for beat in self.beats[index]:
                lines.append(f"  - {beat.description}")
        return "\n".join(lines)

    def summary_text(self) -> str:
        if self.is_empty():
            return "(empty)"
        total = sum(len(b) for b in self.beats.values())
        return f"{total} beats across {len(self.beats)} scenes"


ExportFormat = Literal["beat_sheet", "screenplay", "treatment", "outline"]


class ScriptExportContent(_Content):
    phase: ClassVar[Phase] = Phase.SCRIPT_EXPORT

    format: ExportFormat = "screenplay"
    content: str = ""
    export_ready: bool = False

    def is_empty(self) -> bool:
        return not self.content.strip()

    def to_text(self) -> str:
        return self.content

    def summary_text(self) -> str:
        if self.is_empty():
            return f"{self.format} (empty)"
        return _shorten(f"{self.format}: {self.content}")


PhaseContent = Union[
    BrainstormContent,
    OneLineContent,
    SceneLinesContent,
    SceneBeatsContent,
    ScriptExportContent,
]

CONTENT_TYPES = {
    Phase.BRAINSTORM: BrainstormContent,
    Phase.ONE_LINE: OneLineContent,
    Phase.SCENE_LINES: SceneLinesContent,
    Phase.SCENE_BEATS: SceneBeatsContent,
    Phase.SCRIPT_EXPORT: ScriptExportContent,
}

# Phases whose payload may be given as a bare string.
_TEXT_FIELDS = {
    Phase.BRAINSTORM: "transcript",
    Phase.ONE_LINE: "summary",
    Phase.SCRIPT_EXPORT: "content",
}


def empty_content(phase) -> PhaseContent:
    return CONTENT_TYPES[to_phase(phase)]()


def coerce_content(phase, value) -> PhaseContent:
    """Validate ``value`` into the content variant for ``phase``.

    Accepts an instance of the right variant, ``None`` (empty content), a
    string for the text phases, a list of scenes (phase 2) or of beat lists
    (phase 3), or a plain dict.
    """
    phase = to_phase(phase)
    model = CONTENT_TYPES[phase]

    if value is None:
        return model()
    if isinstance(value, model):
        return value.model_copy(deep=True)
    if isinstance(value, _Content):
        raise InvalidContentError(
            phase, f"expected {model.__name__}, got {type(value).__name__}"
        )

    if isinstance(value, str):
        if phase not in _TEXT_FIELDS:
            raise InvalidContentError(phase, "plain text is not accepted for this phase")
        data = {_TEXT_FIELDS[phase]: value}
    elif isinstance(value, list):
        if phase is Phase.SCENE_LINES:
            data = {"scenes": value}
        elif phase is Phase.SCENE_BEATS:
            data = {"beats": dict(enumerate(value))}
        else:
            raise InvalidContentError(phase, "a list is not accepted for this phase")
    elif isinstance(value, dict):
        data = value
        if phase is Phase.SCENE_BEATS and "beats" not in value:
            data = {"beats": value}
    else:
        raise InvalidContentError(phase, f"unsupported content type {type(value).__name__}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidContentError(phase, str(e)) from e


def content_to_dict(content: PhaseContent) -> dict:
    return content.to_dict()


def content_from_dict(phase, data: Optional[dict]) -> PhaseContent:
    """Rebuild content stored with ``content_to_dict``."""
    if data is not None and not isinstance(data, dict):
        raise InvalidContentError(to_phase(phase), f"expected a mapping, got {type(data).__name__}")
    return coerce_content(phase, data)
