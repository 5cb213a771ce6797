"""Tool settings loading for ai-rules (.ai-rules-settings.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

SETTINGS_FILENAME = ".ai-rules-settings.yml"


class ConfigError(RuntimeError):
    """Raised when the settings file cannot be parsed."""


class ConfigurationLoadError(ConfigError):
    """Raised when question, rule, content or project configuration data is malformed."""


@dataclass
class OutputSettings:
    """Where generated documents go and how existing files are treated."""

    dir: Optional[Path] = None
    overwrite: bool = True
    backups: bool = False


@dataclass
class LoggingSettings:
    """Optional log file sink."""

    file: Optional[Path] = None


@dataclass
class Settings:
    """Represents the high-level settings defined in .ai-rules-settings.yml."""

    root: Path
    content_dir: Optional[Path] = None
    templates_dir: Optional[Path] = None
    output: OutputSettings = field(default_factory=OutputSettings)
    formats: List[str] = field(default_factory=list)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def load_settings(settings_path: Path) -> Settings:
    """Load settings from disk, returning defaults when the file is absent."""
    settings_file = _resolve_settings_path(settings_path)
    root = settings_file.parent.resolve()

    if not settings_file.exists():
        return Settings(root=root)

    data = _read_settings(settings_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{SETTINGS_FILENAME} must contain a mapping at the root")

    content_dir_str = _as_str(data.get("content_dir"))
    content_dir = root / content_dir_str if content_dir_str else None
    templates_dir_str = _as_str(data.get("templates_dir"))
    templates_dir = root / templates_dir_str if templates_dir_str else None

    output_data = _as_dict(data.get("output"))
    output = OutputSettings()
    if output_data:
        dir_str = _as_str(output_data.get("dir"))
        output.dir = root / dir_str if dir_str else None
        overwrite = _as_bool(output_data.get("overwrite"))
        output.overwrite = True if overwrite is None else overwrite
        output.backups = _as_bool(output_data.get("backups")) or False

    logging_data = _as_dict(data.get("logging"))
    logging_settings = LoggingSettings()
    if logging_data:
        file_str = _as_str(logging_data.get("file"))
        logging_settings.file = root / file_str if file_str else None

    return Settings(
        root=root,
        content_dir=content_dir,
        templates_dir=templates_dir,
        output=output,
        formats=_as_str_list(data.get("formats")),
        logging=logging_settings,
    )


def _resolve_settings_path(settings_path: Path) -> Path:
    settings_path = settings_path.expanduser()
    if settings_path.is_dir():
        return (settings_path / SETTINGS_FILENAME).resolve()
    if settings_path.name != SETTINGS_FILENAME:
        return (settings_path.parent / SETTINGS_FILENAME).resolve()
    return settings_path.resolve()


def _read_settings(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "ConfigurationLoadError",
    "LoggingSettings",
    "OutputSettings",
    "SETTINGS_FILENAME",
    "Settings",
    "load_settings",
]
