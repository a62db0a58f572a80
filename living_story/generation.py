"""Collaborators the engine talks to: content generation and compliance checks.

The engine only depends on the two protocols. ``CallableGenerator`` wraps a
plain function and ``LLMGenerator`` talks to an OpenAI-compatible chat API.
"""

import asyncio
import inspect
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from loguru import logger

from .config import GeneratorConfig
from .exceptions import GenerationError, InvalidContentError
from .models.content import PhaseContent, coerce_content
from .models.phase import Phase, to_phase
from .utils.parsing import parse_json_response, strip_code_fence


@dataclass
class GenerationOptions:
    reason: str = ""
    source_phase: Optional[Phase] = None
    current_content: Optional[PhaseContent] = None
    story: Dict[Phase, PhaseContent] = field(default_factory=dict)


class GenerationCollaborator(Protocol):
    """Produces rewritten content for a stale phase from its upstream phase."""

    async def generate(
        self, phase: Phase, upstream_content: PhaseContent, options: GenerationOptions
    ) -> PhaseContent:
        ...


@dataclass
class ComplianceReport:
    phase: Phase
    issues: List[dict] = field(default_factory=list)
    score: Optional[float] = None

    @property
    def passed(self) -> bool:
        return not self.issues


class ComplianceChecker(Protocol):
    """Annotates phase text against style/format rules."""

    def analyze(self, content_text: str, phase: Phase) -> ComplianceReport:
        ...


class CallableGenerator:
    """Adapts a sync or async function ``(phase, upstream, options)`` to the protocol."""

    def __init__(self, func: Callable[..., Any]):
        self.func = func

    async def generate(self, phase, upstream_content, options):
        result = self.func(phase, upstream_content, options)
        if inspect.isawaitable(result):
            result = await result
        try:
            return coerce_content(phase, result)
        except InvalidContentError as e:
            raise GenerationError(phase, e.message) from e


SYSTEM_PROMPT = """You are an expert story development assistant maintaining narrative consistency across a five-phase screenwriting workflow (Brainstorm, One-Line Summary, Scene Lines, Scene Beats, Script Export).

When an upstream phase changes, you rewrite the requested downstream phase so that it:
1. Reflects the upstream change
2. Preserves story elements the change did not touch
3. Keeps character development and thematic consistency intact
4. Stays usable by the phases that follow"""

PHASE_INSTRUCTIONS = {
    Phase.ONE_LINE: (
        "Write the one-line summary. Return JSON with: summary (string), "
        "themes (array of strings), characters (array of strings), genre (string)."
    ),
    Phase.SCENE_LINES: (
        "Write the scene lines. Return JSON with: scenes (array of {id, title, "
        "description, purpose, order, characters, stakes, tension_level 1-10})."
    ),
    Phase.SCENE_BEATS: (
        "Break every scene down into beats. Return JSON with: beats (object mapping "
        "the zero-based scene index to an array of {id, description, characters, "
        "emotions, conflicts})."
    ),
    Phase.SCRIPT_EXPORT: (
        "Write the script export in the requested format. Return only the document text."
    ),
}


@dataclass
class GenerationLog:
    phase: int = 0
    prompt_preview: str = ""
    response_preview: str = ""
    elapsed_seconds: float = 0.0


class LLMGenerator:
    """Generation collaborator backed by an OpenAI-compatible chat endpoint."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.logs: List[GenerationLog] = []

    async def generate(self, phase, upstream_content, options):
        phase = to_phase(phase)
        if phase is Phase.BRAINSTORM:
            raise GenerationError(phase, "brainstorm has no upstream phase to generate from")

        prompt = self.build_prompt(phase, upstream_content, options)
        start = time.time()
        try:
            raw = await asyncio.to_thread(self.call_model, SYSTEM_PROMPT, prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(phase, str(e)) from e

        self._log(phase, prompt, raw, time.time() - start)
        return self.parse_response(phase, raw, options)

    def build_prompt(self, phase: Phase, upstream_content: PhaseContent, options: GenerationOptions) -> str:
        upstream_phase = Phase(phase - 1)
        parts = [f"## Upstream: {upstream_phase.label}\n{upstream_content.to_text()}"]

        earlier = [
            f"## {p.label}\n{c.to_text()}"
            for p, c in sorted(options.story.items())
            if p < upstream_phase and not c.is_empty()
        ]
        if earlier:
            parts.append("## Earlier phases\n" + "\n\n".join(earlier))

        current = options.current_content
        if current is not None and not current.is_empty():
            parts.append(
                f"## Current {phase.label}\n"
                f"{json.dumps(current.model_dump(mode='json'), ensure_ascii=False, indent=2)}"
            )
        if options.reason:
            parts.append(f"## Reason for update\n{options.reason}")
        if phase is Phase.SCRIPT_EXPORT and current is not None:
            parts.append(f"## Format\n{current.format}")

        parts.append(f"## Task\n{PHASE_INSTRUCTIONS[phase]}")
        return "\n\n".join(parts)

    def call_model(self, system: str, prompt: str) -> str:
        """Call the chat completions API."""
        from openai import OpenAI

        client = OpenAI(
            api_key=self.config.api_key or None,
            base_url=self.config.base_url,
        )
        response = client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        return response.choices[0].message.content or ""

    def parse_response(self, phase: Phase, raw: str, options: GenerationOptions) -> PhaseContent:
        if phase is Phase.SCRIPT_EXPORT:
            current = options.current_content
            fmt = current.format if current is not None else "screenplay"
            value = {"format": fmt, "content": strip_code_fence(raw), "export_ready": True}
        else:
            try:
                value = parse_json_response(raw)
            except ValueError as e:
                if phase is not Phase.ONE_LINE or not raw.strip():
                    raise GenerationError(phase, str(e)) from e
                # A bare sentence is still a usable one-line summary
                value = strip_code_fence(raw)

        try:
            return coerce_content(phase, value)
        except InvalidContentError as e:
            raise GenerationError(phase, e.message) from e

    def _log(self, phase: Phase, prompt: str, response: str, elapsed: float) -> None:
        logger.debug(f"Generated phase {int(phase)} in {elapsed:.2f}s")
        self.logs.append(
            GenerationLog(
                phase=int(phase),
                prompt_preview=prompt[:200],
                response_preview=response[:200] if response else "",
                elapsed_seconds=round(elapsed, 2),
            )
        )
