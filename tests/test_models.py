import pytest

from living_story.exceptions import InvalidContentError, InvalidPhaseTransition
from living_story.models import (
    BrainstormContent,
    OneLineContent,
    Phase,
    SceneBeatsContent,
    SceneLinesContent,
    ScriptExportContent,
    coerce_content,
    content_from_dict,
    content_to_dict,
    empty_content,
    to_phase,
)


def test_to_phase_accepts_ints_and_phases():
    assert to_phase(2) is Phase.SCENE_LINES
    assert to_phase(Phase.SCRIPT_EXPORT) is Phase.SCRIPT_EXPORT


@pytest.mark.parametrize("value", [-1, 5, "x", "3", 2.7, 2.0, None, True])
def test_to_phase_rejects_invalid_values(value):
    with pytest.raises(InvalidPhaseTransition):
        to_phase(value)


def test_text_phases_accept_plain_strings():
    assert coerce_content(0, "notes").transcript == "notes"
    assert coerce_content(1, "A villain's redemption.").summary == "A villain's redemption."
    export = coerce_content(4, "FADE IN:")
    assert isinstance(export, ScriptExportContent)
    assert export.content == "FADE IN:"
    assert export.format == "screenplay"


def test_structured_phases_reject_plain_strings():
    with pytest.raises(InvalidContentError):
        coerce_content(Phase.SCENE_LINES, "just text")
    with pytest.raises(InvalidContentError):
        coerce_content(Phase.SCENE_BEATS, "just text")


def test_scene_list_is_validated():
    content = coerce_content(2, [{"id": "s1", "title": "Open", "order": 2}, {"id": "s2", "order": 1}])
    assert isinstance(content, SceneLinesContent)
    assert [s.id for s in content.ordered_scenes()] == ["s2", "s1"]

    with pytest.raises(InvalidContentError):
        coerce_content(2, [{"title": "missing id"}])
    with pytest.raises(InvalidContentError):
        coerce_content(2, [{"id": "s1", "tension_level": 11}])


def test_beats_accept_mapping_or_list():
    from_mapping = coerce_content(3, {1: [{"id": "b1", "description": "x"}]})
    assert isinstance(from_mapping, SceneBeatsContent)
    assert list(from_mapping.beats) == [1]

    from_list = coerce_content(3, [[{"id": "b1"}], [{"id": "b2"}, {"id": "b3"}]])
    assert sorted(from_list.beats) == [0, 1]
    assert len(from_list.all_beats()) == 3


def test_unknown_fields_are_rejected():
    with pytest.raises(InvalidContentError):
        coerce_content(1, {"summary": "x", "logline": "y"})


def test_wrong_variant_is_rejected():
    with pytest.raises(InvalidContentError):
        coerce_content(Phase.ONE_LINE, BrainstormContent(transcript="x"))


def test_none_gives_empty_content():
    for phase in Phase:
        content = coerce_content(phase, None)
        assert content.is_empty()
        assert type(content) is type(empty_content(phase))


def test_coerce_copies_typed_content():
    original = OneLineContent(summary="A hero's journey.", characters=["Mara"])
    copied = coerce_content(1, original)
    copied.characters.append("Theo")
    assert original.characters == ["Mara"]


def test_summary_text():
    assert empty_content(2).summary_text() == "(empty)"
    scenes = coerce_content(2, [{"id": "s1", "title": "Open", "order": 1}])
    assert scenes.summary_text() == "1 scenes: Open"
    beats = coerce_content(3, {0: [{"id": "a"}, {"id": "b"}]})
    assert beats.summary_text() == "2 beats across 1 scenes"
    long_line = coerce_content(1, "word " * 100)
    assert len(long_line.summary_text()) <= 120
    assert long_line.summary_text().endswith("...")


def test_content_dict_round_trip():
    beats = coerce_content(3, {0: [{"id": "b1", "conflicts": ["guards"]}]})
    data = content_to_dict(beats)
    assert data == beats.to_dict()
    assert content_from_dict(3, data) == beats

    with pytest.raises(InvalidContentError):
        content_from_dict(2, "not a mapping")
