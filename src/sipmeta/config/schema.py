"""
sipmeta — configuration schema and validation.

File: src/sipmeta/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules for
  ``sipmeta.toml``.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Every issue found is reported at once, not just the first.
- Deterministic deep-merge helpers for layering file, env and CLI values.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from sipmeta.constants import DEFAULT_CAPACITY
from sipmeta.domain.dates import new_date
from sipmeta.domain.models import AccessScope
from sipmeta.utils.hashing import supported_algorithms

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "console")

# Config paths that should be normalized relative to config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("output", "dir"),
    ("output", "content_dir"),
    ("logging", "log_dir"),
)


class OutputConfig(TypedDict):
    dir: str
    content_dir: str
    sample_start: int
    sample_size: int


class BatchConfig(TypedDict):
    capacity: int


class AccessConfig(TypedDict):
    direction: int
    description: str
    execute_date: str
    scope: str
    publish: bool


class AgencyConfig(TypedDict):
    id: int
    name: str


class SeriesConfig(TypedDict):
    id: int


IdentificationConfig = TypedDict(
    "IdentificationConfig",
    {"blacklist": list[str], "format_map": dict[str, list[str]], "hash_algorithm": str},
)
DisposalConfig = TypedDict("DisposalConfig", {"authority": str, "class": str})


class LoggingSection(TypedDict):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    format: Literal["json", "console"]
    log_dir: str


class SipmetaConfig(TypedDict):
    output: OutputConfig
    batch: BatchConfig
    access: AccessConfig
    agency: AgencyConfig
    series: SeriesConfig
    disposal: DisposalConfig
    identification: IdentificationConfig
    logging: LoggingSection


DEFAULT_CONFIG: Final[SipmetaConfig] = {
    "output": {
        "dir": ".",
        "content_dir": "",
        "sample_start": 0,
        "sample_size": -1,
    },
    "batch": {
        "capacity": DEFAULT_CAPACITY,
    },
    "access": {
        "direction": 0,
        "description": "",
        "execute_date": "",
        "scope": AccessScope.GLOBAL.value,
        "publish": True,
    },
    "agency": {
        "id": 0,
        "name": "",
    },
    "series": {
        "id": 0,
    },
    "disposal": {
        "authority": "",
        "class": "",
    },
    "identification": {
        "blacklist": [],
        "format_map": {},
        "hash_algorithm": "",
    },
    "logging": {
        "level": "INFO",
        "format": "console",
        "log_dir": "",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


_Validator = Callable[[Mapping[str, object], str, _IssueCollector], dict[str, Any]]


def default_config() -> SipmetaConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    sections: dict[str, _Validator] = {
        "output": _validate_output,
        "batch": _validate_batch,
        "access": _validate_access,
        "agency": _validate_agency,
        "series": _validate_series,
        "disposal": _validate_disposal,
        "identification": _validate_identification,
        "logging": _validate_logging,
    }
    _reject_unknown_keys(root, set(sections), "", issues)

    normalized: dict[str, Any] = {}
    for key in sorted(sections):
        raw = root.get(key)
        if raw is None:
            issues.add(key, "missing required section")
            continue
        section = _as_object(raw, key, issues)
        if section is None:
            continue
        normalized[key] = sections[key](section, key, issues)

    if not issues.has_issues:
        _validate_cross_fields(normalized, issues)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_output(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"dir", "content_dir", "sample_start", "sample_size"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "dir" in payload:
        _store(out, "dir", _as_path_text(payload["dir"], _join(path, "dir"), issues))
    if "content_dir" in payload:
        _store(
            out,
            "content_dir",
            _as_path_text(
                payload["content_dir"], _join(path, "content_dir"), issues, allow_empty=True
            ),
        )
    if "sample_start" in payload:
        _store(
            out,
            "sample_start",
            _as_int(payload["sample_start"], _join(path, "sample_start"), issues),
        )
    if "sample_size" in payload:
        _store(
            out,
            "sample_size",
            _as_int(payload["sample_size"], _join(path, "sample_size"), issues, minimum=-1),
        )
    return out


def _validate_batch(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"capacity"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "capacity" in payload:
        _store(
            out,
            "capacity",
            _as_int(payload["capacity"], _join(path, "capacity"), issues, minimum=1),
        )
    return out


def _validate_access(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"direction", "description", "execute_date", "scope", "publish"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "direction" in payload:
        _store(
            out,
            "direction",
            _as_int(payload["direction"], _join(path, "direction"), issues, minimum=0),
        )
    if "description" in payload:
        _store(
            out,
            "description",
            _as_str(payload["description"], _join(path, "description"), issues, allow_empty=True),
        )
    if "execute_date" in payload:
        execute_path = _join(path, "execute_date")
        parsed_date = _as_str(payload["execute_date"], execute_path, issues, allow_empty=True)
        if parsed_date and new_date(parsed_date) is None:
            issues.add(execute_path, "must be a W3C date (yyyy, yyyy-mm or yyyy-mm-dd)")
        else:
            _store(out, "execute_date", parsed_date)
    if "scope" in payload:
        _store(
            out,
            "scope",
            _as_enum(
                payload["scope"],
                _join(path, "scope"),
                issues,
                allowed_values=tuple(scope.value for scope in AccessScope),
            ),
        )
    if "publish" in payload:
        _store(out, "publish", _as_bool(payload["publish"], _join(path, "publish"), issues))
    return out


def _validate_agency(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"id", "name"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "id" in payload:
        _store(out, "id", _as_int(payload["id"], _join(path, "id"), issues, minimum=0))
    if "name" in payload:
        _store(
            out, "name", _as_str(payload["name"], _join(path, "name"), issues, allow_empty=True)
        )
    return out


def _validate_series(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"id"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "id" in payload:
        _store(out, "id", _as_int(payload["id"], _join(path, "id"), issues, minimum=0))
    return out


def _validate_disposal(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"authority", "class"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in sorted(allowed):
        if key in payload:
            _store(out, key, _as_str(payload[key], _join(path, key), issues, allow_empty=True))
    return out


def _validate_identification(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"blacklist", "format_map", "hash_algorithm"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "blacklist" in payload:
        _store(
            out, "blacklist", _as_str_list(payload["blacklist"], _join(path, "blacklist"), issues)
        )
    if "format_map" in payload:
        _store(
            out,
            "format_map",
            _as_format_map(payload["format_map"], _join(path, "format_map"), issues),
        )
    if "hash_algorithm" in payload:
        hash_path = _join(path, "hash_algorithm")
        algorithm = _as_str(payload["hash_algorithm"], hash_path, issues, allow_empty=True)
        if algorithm and algorithm.lower() not in supported_algorithms():
            expected = ", ".join(sorted(supported_algorithms()))
            issues.add(hash_path, f"unsupported algorithm {algorithm!r}; expected one of: {expected}")
        elif algorithm is not None:
            out["hash_algorithm"] = algorithm.lower()
    return out


def _validate_logging(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"level", "format", "log_dir"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "level" in payload:
        raw_level = payload["level"]
        level = raw_level.upper() if isinstance(raw_level, str) else raw_level
        _store(
            out,
            "level",
            _as_enum(level, _join(path, "level"), issues, allowed_values=LOG_LEVELS),
        )
    if "format" in payload:
        _store(
            out,
            "format",
            _as_enum(payload["format"], _join(path, "format"), issues, allowed_values=LOG_FORMATS),
        )
    if "log_dir" in payload:
        _store(
            out,
            "log_dir",
            _as_path_text(payload["log_dir"], _join(path, "log_dir"), issues, allow_empty=True),
        )
    return out


def _validate_cross_fields(config: Mapping[str, Any], issues: _IssueCollector) -> None:
    access = config.get("access", {})
    if access.get("direction", 0) > 0 and not access.get("execute_date"):
        issues.add("access.execute_date", "required when access.direction is set")


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(
    value: object, path: str, issues: _IssueCollector, *, allow_empty: bool = False
) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed and not allow_empty:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(
    value: object, path: str, issues: _IssueCollector, *, allow_empty: bool = False
) -> str | None:
    parsed = _as_str(value, path, issues, allow_empty=allow_empty)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if isinstance(value, str) or not isinstance(value, Sequence):
        issues.add(path, f"expected list of strings, got {type(value).__name__}")
        return None
    out: list[str] = []
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is not None and parsed not in out:
            out.append(parsed)
    return out


def _as_format_map(
    value: object, path: str, issues: _IssueCollector
) -> dict[str, list[str]] | None:
    mapping = _as_object(value, path, issues)
    if mapping is None:
        return None
    out: dict[str, list[str]] = {}
    for extension in sorted(mapping):
        entry_path = _join(path, extension)
        entry = mapping[extension]
        if isinstance(entry, str) or not isinstance(entry, Sequence) or len(entry) != 2:
            issues.add(entry_path, "expected [puid, mime]")
            continue
        puid = _as_str(entry[0], f"{entry_path}[0]", issues)
        mime = _as_str(entry[1], f"{entry_path}[1]", issues, allow_empty=True)
        if puid is not None and mime is not None:
            out[extension.lower().lstrip(".")] = [puid, mime]
    return out


def _store(out: dict[str, Any], key: str, value: object) -> None:
    if value is not None:
        out[key] = value


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            elif isinstance(existing, Mapping):
                nested = _deep_copy_mapping(existing)
                _merge_into(nested, value)
                target[key] = nested
            else:
                nested_new: dict[str, Any] = {}
                _merge_into(nested_new, value)
                target[key] = nested_new
        else:
            target[key] = _deep_copy_value(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        out[key] = _deep_copy_value(value[key])
    return out


def _deep_copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, str):
                out[key] = _deep_copy_value(item)
        return out
    if isinstance(value, list):
        return [_deep_copy_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_deep_copy_value(item) for item in value)
    return copy.deepcopy(value)


__all__ = [
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "SipmetaConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
