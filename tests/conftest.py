"""Shared fixtures for living story tests."""

import asyncio

import pytest

from living_story import Config, GenerationError, LivingStoryEngine, Phase, PhaseStore
from living_story.models import coerce_content


SCENES = [
    {
        "id": "s1",
        "title": "The Call",
        "description": "Mara finds the map in her father's study",
        "purpose": "Inciting incident",
        "order": 1,
        "characters": ["Mara"],
    },
    {
        "id": "s2",
        "title": "The Crossing",
        "description": "Mara and Theo confront the border guards",
        "purpose": "Raise the stakes",
        "order": 2,
        "characters": ["Mara", "Theo"],
        "tension_level": 8,
    },
]

BEATS = {
    0: [{"id": "b1", "description": "Mara opens the drawer", "characters": ["Mara"]}],
    1: [
        {
            "id": "b2",
            "description": "The guards block the bridge",
            "characters": ["Mara", "Theo"],
            "conflicts": ["Guards refuse passage"],
        }
    ],
}

GENERATED = {
    Phase.ONE_LINE: "A generated summary.",
    Phase.SCENE_LINES: [{"id": "g1", "title": "Generated", "description": "A new scene", "order": 1}],
    Phase.SCENE_BEATS: {0: [{"id": "gb1", "description": "A new beat"}]},
    Phase.SCRIPT_EXPORT: {"format": "screenplay", "content": "INT. STUDY - NIGHT", "export_ready": True},
}


class FakeGenerator:
    """Generation collaborator returning canned content and recording calls."""

    def __init__(self, fail_on=(), outputs=None, on_call=None):
        self.fail_on = {Phase(p) for p in fail_on}
        self.outputs = dict(GENERATED)
        self.outputs.update(outputs or {})
        self.on_call = on_call
        self.calls = []

    async def generate(self, phase, upstream_content, options):
        self.calls.append((Phase(phase), upstream_content, options))
        if self.on_call is not None:
            await self.on_call(phase)
        if phase in self.fail_on:
            raise GenerationError(phase, "model unavailable")
        return coerce_content(phase, self.outputs[phase])

    @property
    def called_phases(self):
        return [phase for phase, _, _ in self.calls]


def run(coro):
    return asyncio.run(coro)


def build_story_store() -> PhaseStore:
    """Store with every phase written by generation, so all are in sync."""
    store = PhaseStore()
    store.replace_generated(Phase.BRAINSTORM, "We talked about a girl and a map.")
    store.replace_generated(Phase.ONE_LINE, "A hero's journey.")
    store.replace_generated(Phase.SCENE_LINES, SCENES)
    store.replace_generated(Phase.SCENE_BEATS, BEATS)
    store.replace_generated(Phase.SCRIPT_EXPORT, None)
    return store


@pytest.fixture
def store():
    return build_story_store()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def engine(store, generator):
    return LivingStoryEngine(generator, config=Config(), store=store)
