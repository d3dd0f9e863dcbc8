"""
Configuration management for open-tasks.

Typed configuration with defaults, user and project JSON files, and
environment variable overrides, merged in that order.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .workflow.directory_context import DirectoryWorkflowContext
from .workflow.errors import ConfigurationError

CONFIG_DIR_NAME = ".open-tasks"
CONFIG_FILE_NAME = ".config.json"
ENV_PREFIX = "OPEN_TASKS_"

LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class WorkflowConfig:
    """open-tasks runtime configuration."""

    # Persistence
    output_dir: str = ".open-tasks/outputs"
    default_extension: str = "txt"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    colors: bool = True

    # Shell steps
    shell: Optional[str] = None
    shell_timeout_seconds: int = 30

    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowConfig":
        """Build a config, keeping unknown keys under ``extra``.

        Accepts the camelCase keys used by existing config files
        (``outputDir``, ``defaultFileExtension``).
        """
        known = {f.name for f in fields(cls)}
        aliases = {"outputDir": "output_dir", "defaultFileExtension": "default_extension"}

        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            key = aliases.get(key, key)
            if key in known and key != "extra":
                values[key] = value
            else:
                extra[key] = value
        return cls(**values, extra=extra)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "WorkflowConfig":
        """Create config from environment variables."""
        return cls.from_dict(_env_overrides(prefix))

    @classmethod
    def from_file(cls, config_path: Path) -> "WorkflowConfig":
        """Load configuration from a JSON file; defaults if it does not exist."""
        if not config_path.exists():
            return cls()
        return cls.from_dict(_read_json(config_path))

    @classmethod
    def load(
        cls,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None,
        env_prefix: str = ENV_PREFIX,
    ) -> "WorkflowConfig":
        """Merge defaults < user config < project config < environment."""
        cwd = Path(cwd or Path.cwd())
        home = Path(home or Path.home())

        data: Dict[str, Any] = {}
        for path in (
            home / CONFIG_DIR_NAME / CONFIG_FILE_NAME,
            cwd / CONFIG_DIR_NAME / CONFIG_FILE_NAME,
        ):
            if path.exists():
                data.update(_read_json(path))
        data.update(_env_overrides(env_prefix))

        config = cls.from_dict(data)
        output_dir = Path(config.output_dir)
        if not output_dir.is_absolute():
            config.output_dir = str(cwd / output_dir)
        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        if str(self.log_level).upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if not self.default_extension or "/" in self.default_extension:
            errors.append(f"Invalid default extension: {self.default_extension!r}")

        if self.shell_timeout_seconds <= 0:
            errors.append("shell_timeout_seconds must be positive")

        return errors

    def ensure_valid(self) -> "WorkflowConfig":
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))
        return self

    def create_context(self) -> DirectoryWorkflowContext:
        return DirectoryWorkflowContext(
            output_dir=self.output_dir, default_extension=self.default_extension
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def _env_overrides(prefix: str) -> Dict[str, Any]:
    config_data: Dict[str, Any] = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            config_key = key[len(prefix):].lower()
            # Convert boolean strings
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            # Convert numeric strings
            elif value.isdigit():
                value = int(value)
            config_data[config_key] = value

    return config_data
