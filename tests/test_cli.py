import pytest
import yaml
from click.testing import CliRunner

from conftest import build_story_store
from living_story.cli import cli
from living_story.models import Phase

@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def story_file(tmp_path):
    store = build_story_store()
    store.set_content(Phase.ONE_LINE, "A villain's redemption.")
    store.set_lock(Phase.SCENE_LINES, True)
    path = tmp_path / "story.yaml"
    path.write_text(yaml.safe_dump({"phases": store.to_dict()}))
    return path

def test_cli_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'affected' in result.output
    assert 'audit' in result.output
    assert 'status' in result.output

def test_affected_command(runner):
    result = runner.invoke(cli, ['affected', '1'])
    assert result.exit_code == 0
    assert 'Scene Lines' in result.output
    assert 'Script Export' in result.output
    assert 'Brainstorm' not in result.output

def test_affected_last_phase(runner):
    result = runner.invoke(cli, ['affected', '4'])
    assert result.exit_code == 0
    assert 'no downstream phases' in result.output

def test_affected_rejects_bad_phase(runner):
    result = runner.invoke(cli, ['affected', '9'])
    assert result.exit_code != 0

def test_status_command(runner, story_file):
    result = runner.invoke(cli, ['status', str(story_file)])
    assert result.exit_code == 0
    assert 'locked' in result.output
    assert 'out of sync' in result.output
    assert "A villain's redemption." in result.output

def test_audit_clean_story(runner, story_file):
    result = runner.invoke(cli, ['audit', str(story_file)])
    assert result.exit_code == 0
    assert 'No consistency issues' in result.output

def test_audit_fails_on_high_severity(runner, tmp_path):
    story = {
        "phases": {
            2: {"content": {"scenes": [{"id": "s1", "title": "Open", "order": 1}]}},
            3: {"content": {"beats": {0: [{"id": "b1", "characters": ["Vex"]}]}}},
        }
    }
    path = tmp_path / "story.yaml"
    path.write_text(yaml.safe_dump(story))

    result = runner.invoke(cli, ['audit', str(path)])
    assert result.exit_code == 1
    assert 'Vex' in result.output

def test_invalid_story_file(runner, tmp_path):
    path = tmp_path / "story.yaml"
    path.write_text(yaml.safe_dump({"phases": {2: {"content": "not scenes"}}}))

    result = runner.invoke(cli, ['status', str(path)])
    assert result.exit_code != 0
    assert 'Could not load' in result.output

def test_config_option(runner, tmp_path):
    config_file = tmp_path / "config.yaml"
    log_file = tmp_path / "logs" / "living_story.log"
    config_file.write_text(f"log_level: WARNING\nlog_file: {log_file}\n")
    result = runner.invoke(cli, ['-c', str(config_file), 'affected', '2'])
    assert result.exit_code == 0
    assert log_file.exists()
