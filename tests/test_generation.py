import json
from unittest.mock import patch

import pytest

from conftest import run
from living_story.config import GeneratorConfig
from living_story.exceptions import GenerationError
from living_story.generation import CallableGenerator, GenerationOptions, LLMGenerator
from living_story.models import OneLineContent, Phase, SceneLinesContent, coerce_content
from living_story.utils import parse_json_response, strip_code_fence


def test_parse_json_response_variants():
    assert parse_json_response('{"summary": "x"}') == {"summary": "x"}
    assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_response('Sure! Here it is: {"a": [1, 2]} Hope that helps.') == {"a": [1, 2]}
    assert parse_json_response('[{"id": "s1"}]') == [{"id": "s1"}]
    with pytest.raises(ValueError):
        parse_json_response("no json here")


def test_strip_code_fence():
    assert strip_code_fence("```\nFADE IN:\n```") == "FADE IN:"
    assert strip_code_fence("  plain text  ") == "plain text"


def test_callable_generator_sync_and_async():
    def sync_fn(phase, upstream, options):
        return f"From: {upstream.summary_text()}"

    async def async_fn(phase, upstream, options):
        return [{"id": "a1", "order": 1}]

    upstream = OneLineContent(summary="A hero's journey.")
    result = run(CallableGenerator(sync_fn).generate(Phase.ONE_LINE, upstream, GenerationOptions()))
    assert result.summary == "From: A hero's journey."

    scenes = run(CallableGenerator(async_fn).generate(Phase.SCENE_LINES, upstream, GenerationOptions()))
    assert isinstance(scenes, SceneLinesContent)
    assert scenes.scenes[0].id == "a1"


def test_callable_generator_rejects_bad_shape():
    generator = CallableGenerator(lambda *a: "plain text")
    with pytest.raises(GenerationError):
        run(generator.generate(Phase.SCENE_LINES, None, GenerationOptions()))


def test_build_prompt_includes_context():
    story = {
        Phase.BRAINSTORM: coerce_content(0, "Notes about a map."),
        Phase.ONE_LINE: coerce_content(1, "A villain's redemption."),
        Phase.SCENE_LINES: coerce_content(2, [{"id": "s1", "title": "The Call", "order": 1}]),
    }
    options = GenerationOptions(
        reason="One-line rewritten",
        source_phase=Phase.ONE_LINE,
        current_content=story[Phase.SCENE_LINES],
        story=story,
    )
    prompt = LLMGenerator().build_prompt(Phase.SCENE_LINES, story[Phase.ONE_LINE], options)

    assert "## Upstream: One-Line Summary\nA villain's redemption." in prompt
    assert "Notes about a map." in prompt
    assert '"title": "The Call"' in prompt
    assert "## Reason for update\nOne-line rewritten" in prompt
    assert "scenes (array of" in prompt


def test_llm_generator_parses_json():
    generator = LLMGenerator(GeneratorConfig(model="test-model"))
    payload = {"scenes": [{"id": "s1", "title": "Open", "order": 1}]}
    upstream = OneLineContent(summary="A hero's journey.")

    with patch.object(LLMGenerator, "call_model", return_value=f"```json\n{json.dumps(payload)}\n```"):
        result = run(generator.generate(Phase.SCENE_LINES, upstream, GenerationOptions()))

    assert result.scenes[0].title == "Open"
    assert len(generator.logs) == 1
    assert generator.logs[0].phase == 2


def test_llm_generator_one_line_accepts_plain_sentence():
    generator = LLMGenerator()
    upstream = coerce_content(0, "Notes")
    with patch.object(LLMGenerator, "call_model", return_value="A villain's redemption."):
        result = run(generator.generate(Phase.ONE_LINE, upstream, GenerationOptions()))
    assert result.summary == "A villain's redemption."


def test_llm_generator_export_keeps_format():
    generator = LLMGenerator()
    current = coerce_content(4, {"format": "treatment", "content": "old"})
    options = GenerationOptions(current_content=current)
    upstream = coerce_content(3, {0: [{"id": "b1", "description": "Mara opens the drawer"}]})

    with patch.object(LLMGenerator, "call_model", return_value="```\nA new treatment.\n```"):
        result = run(generator.generate(Phase.SCRIPT_EXPORT, upstream, options))

    assert result.format == "treatment"
    assert result.content == "A new treatment."
    assert result.export_ready


def test_llm_generator_wraps_failures():
    generator = LLMGenerator()
    upstream = OneLineContent(summary="A hero's journey.")

    with patch.object(LLMGenerator, "call_model", side_effect=RuntimeError("rate limited")):
        with pytest.raises(GenerationError, match="rate limited"):
            run(generator.generate(Phase.SCENE_LINES, upstream, GenerationOptions()))

    with patch.object(LLMGenerator, "call_model", return_value="not json at all"):
        with pytest.raises(GenerationError):
            run(generator.generate(Phase.SCENE_LINES, upstream, GenerationOptions()))


def test_llm_generator_refuses_brainstorm():
    with pytest.raises(GenerationError):
        run(LLMGenerator().generate(Phase.BRAINSTORM, None, GenerationOptions()))
