import json
import logging

import pytest
import yaml
from typer.testing import CliRunner

from open_tasks import __version__
from open_tasks import main
from open_tasks.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_cli_help_runs():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "workflow" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_store_writes_into_output_dir(tmp_path):
    result = runner.invoke(app, ["store", "hello", "--token", "greeting", "-o", "refs"])

    assert result.exit_code == 0, result.output
    files = list((tmp_path / "refs").iterdir())
    assert len(files) == 1
    assert files[0].name.endswith("-greeting.txt")
    assert files[0].read_text(encoding="utf-8") == "hello"


def test_store_json_output(tmp_path):
    result = runner.invoke(app, ["store", "hello", "--token", "greeting", "--json"])

    assert result.exit_code == 0, result.output
    [record] = json.loads(result.stdout)
    assert record["token"] == "greeting"
    assert record["preview"] == "hello"
    assert (tmp_path / ".open-tasks" / "outputs").is_dir()


def test_load_missing_file():
    result = runner.invoke(app, ["load", "missing.txt"])
    assert result.exit_code == 1


def test_load_reports_ref(tmp_path):
    (tmp_path / "notes.md").write_text("# Notes", encoding="utf-8")

    result = runner.invoke(app, ["load", "notes.md", "--token", "notes", "--json"])

    assert result.exit_code == 0, result.output
    [record] = json.loads(result.stdout)
    assert record["file_name"] == "notes.md"


def test_run_workflow(tmp_path, sample_workflow):
    (tmp_path / "flow.yaml").write_text(yaml.safe_dump(sample_workflow), encoding="utf-8")

    result = runner.invoke(app, ["run", "flow.yaml"])

    assert result.exit_code == 0, result.output
    assert "Workflow completed" in result.stdout
    assert len(list((tmp_path / ".open-tasks" / "outputs").iterdir())) == 4


def test_run_failing_workflow_exits_nonzero(tmp_path):
    workflow = {"steps": [{"command": "replace", "with": {"input": "absent"}}]}
    (tmp_path / "flow.yaml").write_text(yaml.safe_dump(workflow), encoding="utf-8")

    result = runner.invoke(app, ["run", "flow.yaml"])

    assert result.exit_code == 1
    assert "Workflow failed" in result.stdout


def test_invalid_config_exits_with_code_2(tmp_path):
    config_dir = tmp_path / ".open-tasks"
    config_dir.mkdir()
    (config_dir / ".config.json").write_text('{"log_format": "xml"}', encoding="utf-8")

    result = runner.invoke(app, ["store", "x"])

    assert result.exit_code == 2


def test_colors_setting_controls_console(monkeypatch):
    monkeypatch.setattr(main.console, "no_color", False)
    monkeypatch.setenv("OPEN_TASKS_COLORS", "false")

    result = runner.invoke(app, ["store", "plain"])

    assert result.exit_code == 0, result.output
    assert main.console.no_color is True
