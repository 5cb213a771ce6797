"""Strongly shaped project configuration and the transforms that produce it."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from .assembly.constants import ALL_DOCUMENTS, DOCUMENT_TYPES
from .config import ConfigError, ConfigurationLoadError
from .logging import get_logger
from .models import AnswerSet, Question, QuestionType
from .questions.resolver import DependencyResolver

PROJECT_TYPES: Tuple[str, ...] = ("typescript", "javascript", "python", "other")
LINTERS: Tuple[str, ...] = ("eslint", "stylelint", "prettier")
TESTING_FRAMEWORKS: Tuple[str, ...] = (
    "vitest",
    "jest",
    "react-testing-library",
    "cypress",
    "playwright",
)
UI_FRAMEWORKS: Tuple[str, ...] = ("react", "vue", "angular", "svelte", "none")
STATE_MANAGEMENT: Tuple[str, ...] = ("redux", "zustand", "context", "mobx", "none")

DEFAULT_TESTING: Tuple[str, ...] = ("vitest", "react-testing-library")
DEFAULT_PROJECT_NAME = "My Project"

CONFIG_FILENAMES: Tuple[str, ...] = (
    "ai-rules.config.json",
    "ai-rules.config.yaml",
    "ai-rules.config.yml",
    ".ai-rules.json",
    ".ai-rules.yaml",
    ".ai-rules.yml",
)

logger = get_logger("configuration")


@dataclass(frozen=True)
class Philosophy:
    tdd: bool = True
    strict_architecture: bool = True
    functional_programming: bool = True


@dataclass(frozen=True)
class Tools:
    linting: Tuple[str, ...] = ("eslint", "prettier")
    eslint: bool = True
    stylelint: bool = False
    prettier: bool = True
    testing: Tuple[str, ...] = DEFAULT_TESTING
    ui_framework: Optional[str] = None
    state_management: Optional[str] = None
    i18n: bool = False


@dataclass(frozen=True)
class Quality:
    accessibility: bool = True
    performance: bool = True
    security: bool = True
    code_review: bool = True


@dataclass(frozen=True)
class Infrastructure:
    cicd: bool = False
    logging: bool = False
    monitoring: bool = False
    documentation: bool = True


@dataclass(frozen=True)
class OutputOptions:
    formats: Tuple[str, ...] = DOCUMENT_TYPES
    project_name: str = DEFAULT_PROJECT_NAME
    customizations: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectConfiguration:
    """Fully resolved settings derived from a completed answer set."""

    project_type: str = "typescript"
    philosophy: Philosophy = field(default_factory=Philosophy)
    tools: Tools = field(default_factory=Tools)
    quality: Quality = field(default_factory=Quality)
    infrastructure: Infrastructure = field(default_factory=Infrastructure)
    output: OutputOptions = field(default_factory=OutputOptions)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON/YAML-ready nested mapping."""
        return _plain(asdict(self))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectConfiguration":
        """Build a configuration from a nested mapping such as a config file."""
        return _ConfigurationReader(data).read()


@dataclass(frozen=True)
class FieldError:
    """A single invalid field in a project configuration mapping."""

    field: str
    message: str
    value: Any = None


class InvalidConfigurationError(ConfigurationLoadError):
    """Raised when a project configuration mapping fails validation."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        details = "; ".join(f"{error.field}: {error.message}" for error in errors)
        super().__init__(f"Invalid project configuration: {details}")
        self.errors = list(errors)


@dataclass
class ConfigLoadResult:
    """Outcome of loading a project configuration file."""

    configuration: ProjectConfiguration
    path: Path
    warnings: List[str] = field(default_factory=list)


# Boolean questions map straight onto one configuration field.
_BOOLEAN_ANSWERS: Dict[str, Tuple[str, str]] = {
    "follow_tdd": ("philosophy", "tdd"),
    "strict_architecture": ("philosophy", "strict_architecture"),
    "functional_programming": ("philosophy", "functional_programming"),
    "i18n": ("tools", "i18n"),
    "accessibility": ("quality", "accessibility"),
    "performance": ("quality", "performance"),
    "security": ("quality", "security"),
    "code_review": ("quality", "code_review"),
    "cicd": ("infrastructure", "cicd"),
    "logging": ("infrastructure", "logging"),
    "monitoring": ("infrastructure", "monitoring"),
    "documentation": ("infrastructure", "documentation"),
}


def coerce_answer(question: Question, value: Any) -> Any:
    """Convert a raw answer into the typed value its question declares."""
    if question.type is QuestionType.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeError(f"Answer for '{question.id}' must be a boolean")
        return value
    if question.type is QuestionType.MULTIPLE:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
            raise TypeError(f"Answer for '{question.id}' must be a list of options")
        return tuple(str(item) for item in value)
    if not isinstance(value, str):
        raise TypeError(f"Answer for '{question.id}' must be a string")
    return value.strip()


def build_configuration(
    answers: AnswerSet | Mapping[str, Any], questions: Sequence[Question]
) -> ProjectConfiguration:
    """Transform a validated answer set into a ProjectConfiguration.

    Only answers to reachable questions are used; everything else falls back to
    the field default so every field of the result is defined.
    """
    answer_set = answers if isinstance(answers, AnswerSet) else AnswerSet(answers)
    resolver = DependencyResolver(questions)
    typed: Dict[str, Any] = {}
    for question in resolver.reachable_questions(answer_set):
        raw = answer_set.get(question.id)
        if raw is None:
            continue
        typed[question.id] = coerce_answer(question, raw)

    groups: Dict[str, Dict[str, Any]] = {
        "philosophy": {},
        "tools": {},
        "quality": {},
        "infrastructure": {},
        "output": {},
    }
    for question_id, (group, name) in _BOOLEAN_ANSWERS.items():
        if question_id in typed:
            groups[group][name] = typed[question_id]

    if "linting" in typed:
        linting = tuple(item for item in typed["linting"] if item in LINTERS)
        groups["tools"].update(
            linting=linting,
            eslint="eslint" in linting,
            stylelint="stylelint" in linting,
            prettier="prettier" in linting,
        )
    if "testing_framework" in typed:
        testing = tuple(item for item in typed["testing_framework"] if item in TESTING_FRAMEWORKS)
        groups["tools"]["testing"] = testing or DEFAULT_TESTING
    if "ui_framework" in typed:
        groups["tools"]["ui_framework"] = _none_as_absent(typed["ui_framework"])
    if "state_management" in typed:
        groups["tools"]["state_management"] = _none_as_absent(typed["state_management"])
    if "output_formats" in typed:
        groups["output"]["formats"] = expand_formats(typed["output_formats"])
    if typed.get("project_name"):
        groups["output"]["project_name"] = typed["project_name"]

    configuration = ProjectConfiguration(
        project_type=typed.get("project_type") or "typescript",
        philosophy=Philosophy(**groups["philosophy"]),
        tools=Tools(**groups["tools"]),
        quality=Quality(**groups["quality"]),
        infrastructure=Infrastructure(**groups["infrastructure"]),
        output=OutputOptions(**groups["output"]),
    )
    logger.debug("Built configuration from %d answered question(s)", len(typed))
    return configuration


def expand_formats(formats: Iterable[str]) -> Tuple[str, ...]:
    """Expand "all" and drop duplicates, keeping canonical document order."""
    requested = {item for item in formats}
    if not requested or ALL_DOCUMENTS in requested:
        return DOCUMENT_TYPES
    return tuple(name for name in DOCUMENT_TYPES if name in requested)


def apply_overrides(
    configuration: ProjectConfiguration,
    *,
    project_type: Optional[str] = None,
    tdd: Optional[bool] = None,
    strict_architecture: Optional[bool] = None,
    formats: Optional[Sequence[str]] = None,
    project_name: Optional[str] = None,
) -> ProjectConfiguration:
    """Return a new configuration with command-line overrides applied."""
    errors: List[FieldError] = []
    if project_type is not None and project_type not in PROJECT_TYPES:
        errors.append(FieldError("project_type", f"must be one of {', '.join(PROJECT_TYPES)}", project_type))
    if formats is not None:
        unknown = [name for name in formats if name not in DOCUMENT_TYPES and name != ALL_DOCUMENTS]
        if unknown:
            errors.append(FieldError("output.formats", f"unknown formats: {', '.join(unknown)}", unknown))
    if errors:
        raise InvalidConfigurationError(errors)

    philosophy = configuration.philosophy
    if tdd is not None:
        philosophy = replace(philosophy, tdd=tdd)
    if strict_architecture is not None:
        philosophy = replace(philosophy, strict_architecture=strict_architecture)
    output = configuration.output
    if formats is not None:
        output = replace(output, formats=expand_formats(formats))
    if project_name:
        output = replace(output, project_name=project_name)
    return replace(
        configuration,
        project_type=project_type or configuration.project_type,
        philosophy=philosophy,
        output=output,
    )


def configuration_warnings(configuration: ProjectConfiguration) -> List[str]:
    """Return non-fatal inconsistencies worth surfacing to the user."""
    warnings: List[str] = []
    if configuration.philosophy.tdd and not configuration.tools.testing:
        warnings.append("TDD is enabled but no testing frameworks are selected")
    if configuration.tools.ui_framework and not configuration.tools.state_management:
        warnings.append("UI framework selected but no state management solution specified")
    return warnings


def find_config_file(search_dir: Path) -> Optional[Path]:
    """Return the first known project configuration file inside search_dir."""
    for filename in CONFIG_FILENAMES:
        candidate = search_dir / filename
        if candidate.is_file():
            return candidate
    return None


def load_project_configuration(config_path: Path) -> ConfigLoadResult:
    """Load, validate and default a project configuration file."""
    path = config_path.expanduser()
    suffix = path.suffix.lower()
    if suffix not in {".json", ".yaml", ".yml"}:
        raise ConfigurationLoadError(f"Unsupported config file format: {suffix or path.name}")
    if not path.is_file():
        raise ConfigurationLoadError(f"Config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if suffix == ".json":
            raw = json.loads(text) if text.strip() else {}
        else:
            raw = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationLoadError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationLoadError(f"{path.name} must contain a mapping at the root")

    configuration = ProjectConfiguration.from_mapping(raw)
    warnings = configuration_warnings(configuration)
    raw_formats = _lookup(_as_mapping(raw.get("output")), "formats")
    if isinstance(raw_formats, list) and ALL_DOCUMENTS in raw_formats and len(raw_formats) > 1:
        warnings.append('Output format "all" selected along with specific formats - "all" will be used')
    for warning in warnings:
        logger.warning("%s: %s", path.name, warning)
    return ConfigLoadResult(configuration=configuration, path=path, warnings=warnings)


def save_project_configuration(configuration: ProjectConfiguration, config_path: Path) -> Path:
    """Write a configuration as YAML or JSON depending on the file extension."""
    suffix = config_path.suffix.lower()
    payload = configuration.to_dict()
    if suffix == ".json":
        content = json.dumps(payload, indent=2) + "\n"
    elif suffix in {".yaml", ".yml"}:
        content = (
            "# ai-rules project configuration\n"
            + yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)
        )
    else:
        raise ConfigError(f"Unsupported config file format: {suffix or config_path.name}")
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content, encoding="utf-8")
    logger.info("Saved project configuration to %s", config_path)
    return config_path


class _ConfigurationReader:
    """Validates a nested mapping field by field, collecting every error."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data
        self.errors: List[FieldError] = []

    def read(self) -> ProjectConfiguration:
        data = self._data
        defaults = ProjectConfiguration()
        project_type = self._choice(data, "project_type", PROJECT_TYPES, defaults.project_type)

        philosophy_data = _as_mapping(_lookup(data, "philosophy"))
        philosophy = Philosophy(
            tdd=self._bool(philosophy_data, "philosophy.tdd", defaults.philosophy.tdd),
            strict_architecture=self._bool(
                philosophy_data, "philosophy.strict_architecture", defaults.philosophy.strict_architecture
            ),
            functional_programming=self._bool(
                philosophy_data, "philosophy.functional_programming", defaults.philosophy.functional_programming
            ),
        )

        tools_data = _as_mapping(_lookup(data, "tools"))
        linting = self._members(tools_data, "tools.linting", LINTERS, None)
        eslint = self._bool(tools_data, "tools.eslint", "eslint" in linting if linting is not None else True)
        stylelint = self._bool(tools_data, "tools.stylelint", "stylelint" in linting if linting is not None else False)
        prettier = self._bool(tools_data, "tools.prettier", "prettier" in linting if linting is not None else True)
        if linting is None:
            linting = tuple(
                name for name, enabled in (("eslint", eslint), ("stylelint", stylelint), ("prettier", prettier)) if enabled
            )
        tools = Tools(
            linting=linting,
            eslint=eslint,
            stylelint=stylelint,
            prettier=prettier,
            testing=self._members(tools_data, "tools.testing", TESTING_FRAMEWORKS, DEFAULT_TESTING),
            ui_framework=_none_as_absent(self._choice(tools_data, "tools.ui_framework", UI_FRAMEWORKS, None)),
            state_management=_none_as_absent(
                self._choice(tools_data, "tools.state_management", STATE_MANAGEMENT, None)
            ),
            i18n=self._bool(tools_data, "tools.i18n", False),
        )

        quality_data = _as_mapping(_lookup(data, "quality"))
        quality = Quality(
            accessibility=self._bool(quality_data, "quality.accessibility", True),
            performance=self._bool(quality_data, "quality.performance", True),
            security=self._bool(quality_data, "quality.security", True),
            code_review=self._bool(quality_data, "quality.code_review", True),
        )

        infrastructure_data = _as_mapping(_lookup(data, "infrastructure"))
        infrastructure = Infrastructure(
            cicd=self._bool(infrastructure_data, "infrastructure.cicd", False),
            logging=self._bool(infrastructure_data, "infrastructure.logging", False),
            monitoring=self._bool(infrastructure_data, "infrastructure.monitoring", False),
            documentation=self._bool(infrastructure_data, "infrastructure.documentation", True),
        )

        output_data = _as_mapping(_lookup(data, "output"))
        formats = self._members(
            output_data, "output.formats", DOCUMENT_TYPES + (ALL_DOCUMENTS,), (ALL_DOCUMENTS,)
        )
        project_name = _lookup(output_data, "project_name")
        if project_name is not None and not isinstance(project_name, str):
            self.errors.append(FieldError("output.project_name", "must be a string", project_name))
            project_name = None
        customizations = _lookup(output_data, "customizations")
        if customizations is not None and not isinstance(customizations, Mapping):
            self.errors.append(FieldError("output.customizations", "must be a mapping", customizations))
            customizations = None
        elif customizations is not None and not _json_safe(customizations):
            self.errors.append(
                FieldError(
                    "output.customizations",
                    "values must be strings, numbers, booleans, lists or mappings",
                    customizations,
                )
            )
            customizations = None
        output = OutputOptions(
            formats=expand_formats(formats),
            project_name=(project_name or "").strip() or DEFAULT_PROJECT_NAME,
            customizations=dict(customizations or {}),
        )

        if self.errors:
            raise InvalidConfigurationError(self.errors)
        return ProjectConfiguration(
            project_type=project_type or defaults.project_type,
            philosophy=philosophy,
            tools=tools,
            quality=quality,
            infrastructure=infrastructure,
            output=output,
        )

    def _bool(self, data: Mapping[str, Any], path: str, default: bool) -> bool:
        value = _lookup(data, path.rsplit(".", 1)[-1])
        if value is None:
            return default
        if not isinstance(value, bool):
            self.errors.append(FieldError(path, "must be true or false", value))
            return default
        return value

    def _choice(
        self, data: Mapping[str, Any], path: str, options: Sequence[str], default: Optional[str]
    ) -> Optional[str]:
        value = _lookup(data, path.rsplit(".", 1)[-1])
        if value is None:
            return default
        if value not in options:
            self.errors.append(FieldError(path, f"must be one of {', '.join(options)}", value))
            return default
        return value

    def _members(
        self,
        data: Mapping[str, Any],
        path: str,
        options: Sequence[str],
        default: Optional[Tuple[str, ...]],
    ) -> Optional[Tuple[str, ...]]:
        value = _lookup(data, path.rsplit(".", 1)[-1])
        if value is None:
            return default
        if not isinstance(value, list):
            self.errors.append(FieldError(path, "must be a list", value))
            return default
        invalid = [item for item in value if item not in options]
        if invalid:
            self.errors.append(
                FieldError(path, f"invalid options: {', '.join(str(item) for item in invalid)}", invalid)
            )
            return default
        return tuple(value)


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    """Read a snake_case key, accepting its camelCase spelling as well."""
    if key in data:
        return data[key]
    head, *rest = key.split("_")
    camel = head + "".join(part.capitalize() for part in rest)
    if camel in data:
        return data[camel]
    return None


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _none_as_absent(value: Optional[str]) -> Optional[str]:
    if value is None or value == "none":
        return None
    return value


def _json_safe(value: Any) -> bool:
    """True when the value survives ``json.dumps`` unchanged (YAML dates do not)."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return True
    if isinstance(value, Mapping):
        return all(isinstance(key, str) and _json_safe(item) for key, item in value.items())
    if isinstance(value, list):
        return all(_json_safe(item) for item in value)
    return False


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


__all__ = [
    "CONFIG_FILENAMES",
    "ConfigLoadResult",
    "FieldError",
    "Infrastructure",
    "InvalidConfigurationError",
    "OutputOptions",
    "Philosophy",
    "ProjectConfiguration",
    "Quality",
    "Tools",
    "apply_overrides",
    "build_configuration",
    "coerce_answer",
    "configuration_warnings",
    "expand_formats",
    "find_config_file",
    "load_project_configuration",
    "save_project_configuration",
]
