"""Search configuration stored in config.yaml."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_PROJECTS_DIR = Path("~/.claude/projects").expanduser()
DEFAULT_CONFIG_PATH = Path("~/.claude-session-search/config.yaml").expanduser()


def _flag(data: dict, key: str, default: bool) -> bool:
    """Read a boolean setting; quoted strings such as "false" are rejected."""
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false: {value!r}")
    return value


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------


@dataclass
class RankingWeights:
    """Weights of the three terms of the combined ranking score."""

    match: float = 0.7
    distance: float = 0.2
    age: float = 0.1

    def to_dict(self) -> dict:
        """Serialize to dict for YAML storage."""
        return {"match": self.match, "distance": self.distance, "age": self.age}

    @classmethod
    def from_dict(cls, data: dict) -> RankingWeights:
        """Deserialize from dict, falling back to defaults for missing keys."""
        defaults = cls()
        return cls(
            match=float(data.get("match", defaults.match)),
            distance=float(data.get("distance", defaults.distance)),
            age=float(data.get("age", defaults.age)),
        )


@dataclass
class SearchConfig:
    """Settings for scanning the session store and ranking results."""

    projects_dir: Path = DEFAULT_PROJECTS_DIR
    include_thinking: bool = True
    display_thinking: bool = False
    match_threshold: float = 0.4
    content_weight: float = 2.0
    directory_weight: float = 1.0
    max_workers: int = 8
    result_limit: int = 20
    weights: RankingWeights = field(default_factory=RankingWeights)

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: If a setting is out of range.
        """
        if not 0.0 < self.match_threshold <= 1.0:
            raise ValueError(f"match_threshold must be in (0, 1]: {self.match_threshold}")
        if self.content_weight <= 0 or self.directory_weight <= 0:
            raise ValueError("content_weight and directory_weight must be positive")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
        if self.result_limit < 1:
            raise ValueError(f"result_limit must be at least 1: {self.result_limit}")
        for name, value in self.weights.to_dict().items():
            if value < 0:
                raise ValueError(f"weights.{name} must not be negative: {value}")

    def to_dict(self) -> dict:
        """Serialize to dict for YAML storage."""
        return {
            "projects_dir": str(self.projects_dir),
            "include_thinking": self.include_thinking,
            "display_thinking": self.display_thinking,
            "match_threshold": self.match_threshold,
            "content_weight": self.content_weight,
            "directory_weight": self.directory_weight,
            "max_workers": self.max_workers,
            "result_limit": self.result_limit,
            "weights": self.weights.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SearchConfig:
        """Deserialize from dict, falling back to defaults for missing keys."""
        defaults = cls()
        projects_dir = data.get("projects_dir")
        return cls(
            projects_dir=(
                Path(projects_dir).expanduser() if projects_dir else defaults.projects_dir
            ),
            include_thinking=_flag(data, "include_thinking", defaults.include_thinking),
            display_thinking=_flag(data, "display_thinking", defaults.display_thinking),
            match_threshold=float(data.get("match_threshold", defaults.match_threshold)),
            content_weight=float(data.get("content_weight", defaults.content_weight)),
            directory_weight=float(data.get("directory_weight", defaults.directory_weight)),
            max_workers=int(data.get("max_workers", defaults.max_workers)),
            result_limit=int(data.get("result_limit", defaults.result_limit)),
            weights=RankingWeights.from_dict(data.get("weights") or {}),
        )


# ---------------------------------------------------------------------------
# ConfigManager
# ---------------------------------------------------------------------------


class ConfigManager:
    """Loads and saves the search configuration file.

    A missing or empty file yields the default configuration. Saving uses an
    atomic write (temp file + rename) so a crash never leaves a partial file.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        self._config_path = Path(config_path).expanduser()

    @property
    def config_path(self) -> Path:
        """Return the configuration file path."""
        return self._config_path

    def exists(self) -> bool:
        return self._config_path.exists()

    def load(self) -> SearchConfig:
        """Load and validate the configuration.

        Raises:
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If the file is not a mapping or a value is out of range.
        """
        if not self._config_path.exists():
            return SearchConfig()

        with open(self._config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return SearchConfig()
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping: {self._config_path}")

        config = SearchConfig.from_dict(data)
        config.validate()
        return config

    def save(self, config: SearchConfig) -> None:
        """Write the configuration to disk."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._config_path.parent,
            prefix=".config_",
            suffix=".yaml.tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
            os.replace(temp_path, self._config_path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
