"""
Configuration management for i18n sync.

Sources:
- CLI flags / environment (see i18n_gen.py)
- projects.json (optional): {"projects": {"Backend": "<phrase project id>"}}
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from .core.constants import (
    DEFAULT_LOCALE,
    DEFAULT_PROJECT,
    GLOBAL_RUN_DELAY_NS,
    LOCALE_KEY_DELIMITER,
)
from .errors import ConfigError


def make_locale_key(project: str, locale: str) -> str:
    """Build a "<project>:<locale>" key."""
    return f"{project}{LOCALE_KEY_DELIMITER}{locale}"


def parse_locale_key(key: str) -> Tuple[str, str]:
    """
    Split a "<project>:<locale>" key.

    Raises:
        ConfigError: key has no delimiter or an empty side
    """
    project, sep, locale = key.partition(LOCALE_KEY_DELIMITER)
    if not sep or not project or not locale:
        raise ConfigError(f"Invalid locale key {key!r}, expected 'project{LOCALE_KEY_DELIMITER}locale'")
    return project, locale


@dataclass(frozen=True)
class SyncConfig:
    """Settings for one sync run. Read-only once built."""
    base_path: Path
    default_project: str = DEFAULT_PROJECT
    default_locale: str = DEFAULT_LOCALE
    update_translations: bool = False
    max_workers: int = 8
    min_run_interval_ns: int = GLOBAL_RUN_DELAY_NS
    clean: bool = False


class ProjectRegistry:
    """
    Maps human-readable project names to remote project ids.

    Built once at startup and not modified during a run.
    """

    def __init__(self, projects: Optional[Dict[str, str]] = None):
        self._projects: Dict[str, str] = dict(projects or {})

    def __contains__(self, name: str) -> bool:
        return name in self._projects

    def __len__(self) -> int:
        return len(self._projects)

    def __str__(self) -> str:
        return " ".join(f"{name}{LOCALE_KEY_DELIMITER}{pid}" for name, pid in self._projects.items())

    def items(self):
        return list(self._projects.items())

    def resolve(self, name: str) -> str:
        """
        Get the remote id for a project name.

        Raises:
            ConfigError: project is not configured
        """
        try:
            return self._projects[name]
        except KeyError:
            raise ConfigError(f"Config is broken, phrase project id for {name} is not specified") from None

    @classmethod
    def from_pairs(cls, pairs) -> "ProjectRegistry":
        """
        Build from "Name:id" strings (the --project-id flag).

        Raises:
            ConfigError: a pair is malformed
        """
        projects = {}
        for pair in pairs or []:
            name, sep, project_id = pair.partition(LOCALE_KEY_DELIMITER)
            name, project_id = name.strip(), project_id.strip()
            if not sep or not name or not project_id:
                raise ConfigError(f"Invalid project id {pair!r}, expected 'Name{LOCALE_KEY_DELIMITER}project_id'")
            projects[name] = project_id
        return cls(projects)

    @classmethod
    def load(cls, path: Path) -> "ProjectRegistry":
        """
        Load projects from a JSON file.

        Raises:
            ConfigError: file is missing or malformed
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Could not load projects file {path}: {e}") from e

        projects = data.get("projects") if isinstance(data, dict) else None
        if not isinstance(projects, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in projects.items()
        ):
            raise ConfigError(f"Projects file {path} must contain {{\"projects\": {{name: id}}}}")
        return cls(projects)

    def merged(self, other: "ProjectRegistry") -> "ProjectRegistry":
        """New registry with other's entries taking precedence."""
        return ProjectRegistry({**self._projects, **other._projects})
