"""Settings manager for nodedeps settings.yaml files.

Three scopes, highest precedence first:
- Local (.nodedeps/settings.local.yaml)
- Project (.nodedeps/settings.yaml)
- User global (~/.nodedeps/settings.yaml)

Resolution knobs live under the ``resolution`` key and are validated into
ResolutionSettings. NODEDEPS_* environment variables override the files.
"""

import logging
import os
import signal
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .errors import ConfigurationError
from .utils.process import DEFAULT_MAX_BUFFER

logger = logging.getLogger(__name__)

Scope = Literal["local", "project", "global"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ResolutionSettings(BaseModel):
    """Knobs for dependency resolution."""

    use_yarn: bool = Field(default=False, description="Resolve through yarn instead of npm")
    dependencies: list[str] | None = Field(None, description="Default allow-list of top-level packages")
    max_buffer: int = Field(default=DEFAULT_MAX_BUFFER, gt=0, description="Cap on captured tool output (bytes)")
    timeout: float | None = Field(None, gt=0, description="Per-invocation timeout in seconds")
    kill_signal: str = Field(default="SIGTERM", description="Signal sent to a cancelled or timed-out tool")

    @field_validator("kill_signal")
    @classmethod
    def _known_signal(cls, value: str) -> str:
        value = value.upper()
        if value not in signal.Signals.__members__:
            raise ValueError(f"unknown signal '{value}'")
        return value

    @property
    def signum(self) -> signal.Signals:
        return signal.Signals[self.kill_signal]


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, settings_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            settings_dir: Base directory for project/local settings (for testing).
                          If None, uses .nodedeps in current directory.
            user_dir: Base directory for user settings. If None, uses ~/.nodedeps.
        """
        if settings_dir is None:
            settings_dir = Path(".nodedeps")
        if user_dir is None:
            user_dir = Path.home() / ".nodedeps"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = settings_dir / "settings.yaml"
        self.local_settings_file = settings_dir / "settings.local.yaml"

    def get_merged_settings(self) -> dict[str, Any]:
        """Merge user, project and local settings (local wins)."""
        merged: dict[str, Any] = {}
        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            settings = self._read_settings(path)
            if settings:
                merged = self._deep_merge(merged, settings)
        return merged

    def get_resolution_settings(self, environ: dict[str, str] | None = None) -> ResolutionSettings:
        """Validated resolution settings, with environment overrides applied.

        Raises:
            ConfigurationError: A file or environment value is invalid
        """
        values = dict(self.get_merged_settings().get("resolution") or {})
        values.update(self._env_overrides(os.environ if environ is None else environ))

        try:
            return ResolutionSettings(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resolution settings: {e}") from e

    def update_resolution(self, updates: dict[str, Any], scope: Scope = "local") -> None:
        """Merge updates into the ``resolution`` section of one scope's file."""
        path = self._scope_path(scope)
        existing = self._read_settings(path) or {}
        candidate = self._deep_merge(existing, {"resolution": updates})

        try:
            ResolutionSettings(**(candidate.get("resolution") or {}))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resolution settings: {e}") from e

        self._write_settings(path, candidate)
        logger.info(f"Updated resolution settings in {path}: {sorted(updates)}")

    def _scope_path(self, scope: Scope) -> Path:
        if scope == "global":
            return self.user_settings_file
        if scope == "project":
            return self.project_settings_file
        return self.local_settings_file

    def _env_overrides(self, environ: dict[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        if (use_yarn := environ.get("NODEDEPS_USE_YARN")) is not None:
            overrides["use_yarn"] = use_yarn.strip().lower() in _TRUE_VALUES
        if max_buffer := environ.get("NODEDEPS_MAX_BUFFER"):
            overrides["max_buffer"] = max_buffer
        if timeout := environ.get("NODEDEPS_TIMEOUT"):
            overrides["timeout"] = timeout
        return overrides

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Args:
            path: Path to settings file

        Returns:
            Settings dict or None if file doesn't exist
        """
        if not path.exists():
            return None

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data and not isinstance(data, dict):
            logger.warning(f"Ignoring settings in {path}: top level is not a mapping")
            return None
        return data or {}

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(settings, f, default_flow_style=False, sort_keys=False)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            overlay: Overlay dictionary (takes precedence)

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
