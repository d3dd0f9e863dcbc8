"""
Shared test configuration for open-tasks.

Provides contexts backed by memory and by a temporary directory, a fake
process runner for shell steps, and sample workflow files.
"""

from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml

from open_tasks.integrations.process import ProcessResult
from open_tasks.workflow import DirectoryWorkflowContext, InMemoryWorkflowContext


class RecordingSink:
    """Progress sink that keeps every message it receives."""

    def __init__(self):
        self.messages: List[tuple] = []

    def write(self, message: str, verbosity: str = "summary") -> None:
        self.messages.append((message, verbosity))


class FakeProcessRunner:
    """Process runner that returns a canned result and records scripts."""

    def __init__(self, result: ProcessResult = None):
        self.result = result or ProcessResult(code=0, stdout="ok\n", stderr="")
        self.calls: List[Dict[str, Any]] = []

    def run(self, command, cwd=None, env=None, timeout=None) -> ProcessResult:
        self.calls.append({"command": command, "cwd": cwd, "timeout": timeout})
        return self.result


@pytest.fixture
def memory_context():
    return InMemoryWorkflowContext()


@pytest.fixture
def output_dir(tmp_path) -> Path:
    return tmp_path / "outputs"


@pytest.fixture
def directory_context(output_dir):
    return DirectoryWorkflowContext(output_dir=output_dir)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fake_runner():
    return FakeProcessRunner()


@pytest.fixture
def sample_workflow() -> Dict[str, Any]:
    """Sample workflow for testing."""
    return {
        "name": "Greeting",
        "description": "Render a greeting and pull the name back out",
        "steps": [
            {"id": "name", "command": "set", "with": {"value": "World", "token": "name"}},
            {
                "id": "template",
                "command": "set",
                "with": {"value": "Hello {{name}}!", "token": "template"},
            },
            {
                "id": "render",
                "command": "replace",
                "with": {"input": "template", "output": "greeting"},
            },
            {
                "id": "extract",
                "command": "extract",
                "with": {"input": "greeting", "pattern": "Hello (\\w+)", "output": "who"},
            },
        ],
    }


@pytest.fixture
def workflow_file(tmp_path, sample_workflow) -> Path:
    """Sample workflow written to a YAML file."""
    path = tmp_path / "greeting.yaml"
    path.write_text(yaml.safe_dump(sample_workflow), encoding="utf-8")
    return path


def _read_frontmatter(path: Path) -> tuple:
    text = path.read_text(encoding="utf-8")
    if not text.startswith("---\n"):
        return None, text
    _, block, body = text.split("---\n", 2)
    return yaml.safe_load(block), body[1:]


@pytest.fixture
def read_frontmatter():
    """Split a persisted ref into its parsed frontmatter and body."""
    return _read_frontmatter
