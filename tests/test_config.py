import pytest
from pydantic import ValidationError

from living_story.config import Config, EngineConfig, GeneratorConfig, ScoringConfig

def test_default_config():
    config = Config()
    assert config.engine.immediate_by_default is False
    assert config.engine.max_history_size == 50
    assert config.engine.generation_timeout is None
    assert config.scoring.base_for("high") == 90
    assert config.generator.model == "gpt-4o"

def test_config_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
engine:
  immediate_by_default: true
  generation_timeout: 30
scoring:
  distance_penalty: 5
log_level: DEBUG
""")

    config = Config.from_yaml(config_file)
    assert config.engine.immediate_by_default is True
    assert config.engine.generation_timeout == 30
    assert config.scoring.distance_penalty == 5
    assert config.scoring.high_priority_base == 90
    assert config.log_level == "DEBUG"

def test_empty_yaml_gives_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert Config.from_yaml(config_file) == Config()

def test_config_validation():
    with pytest.raises(ValidationError):
        Config(engine=EngineConfig(max_history_size=0))
    with pytest.raises(ValidationError):
        EngineConfig(generation_timeout=-1)
    with pytest.raises(ValidationError):
        ScoringConfig(high_priority_base=150)
    with pytest.raises(ValidationError):
        GeneratorConfig(temperature=3.0)

def test_config_to_yaml(tmp_path):
    config = Config(engine=EngineConfig(max_history_size=10))
    output_file = tmp_path / "output.yaml"

    config.to_yaml(output_file)
    assert output_file.exists()

    loaded = Config.from_yaml(output_file)
    assert loaded.engine.max_history_size == 10
