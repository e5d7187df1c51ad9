"""Configuration loading for the statement rules toolkit.

Values are layered: built-in defaults, then the YAML config file, then
``STMTRULES_*`` environment overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from . import paths
from .exceptions import ConfigurationError

DEFAULT_FRESHNESS_DAYS = 180


@dataclass(frozen=True, slots=True)
class ValidationSettings:
    """Rule validation policy."""

    freshness_days: int


@dataclass(frozen=True, slots=True)
class NormalizationSettings:
    """Normalisation behaviour for extracted statements."""

    strict: bool
    reset_balance_per_section: bool


@dataclass(frozen=True, slots=True)
class ReportSettings:
    """Settings consumed when assembling the diagnostics report."""

    highlight_threshold: int


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    validation: ValidationSettings
    normalization: NormalizationSettings
    report: ReportSettings

    def with_overrides(
        self,
        *,
        strict: bool | None = None,
        highlight_threshold: int | None = None,
    ) -> AppConfig:
        """Return a copy with CLI-level overrides applied."""
        normalization = self.normalization
        report = self.report
        if strict is not None:
            normalization = replace(normalization, strict=strict)
        if highlight_threshold is not None:
            report = replace(report, highlight_threshold=highlight_threshold)
        return replace(self, normalization=normalization, report=report)


def _default_config() -> dict[str, Any]:
    return {
        "validation": {"freshness_days": DEFAULT_FRESHNESS_DAYS},
        "normalization": {
            "strict": False,
            "reset_balance_per_section": True,
        },
        "report": {"highlight_threshold": 0},
    }


ENV_OVERRIDE_SPEC: dict[str, tuple[str, type]] = {
    "validation.freshness_days": ("STMTRULES_FRESHNESS_DAYS", int),
    "normalization.strict": ("STMTRULES_STRICT", bool),
    "normalization.reset_balance_per_section": ("STMTRULES_RESET_BALANCE_PER_SECTION", bool),
    "report.highlight_threshold": ("STMTRULES_HIGHLIGHT_THRESHOLD", int),
}


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from defaults, YAML file, and env overrides."""
    env = dict(os.environ if env is None else env)
    resolved_config_path = _resolve_config_path(config_path, env)
    file_data = _load_yaml(resolved_config_path)
    merged = _deep_merge(_default_config(), file_data)
    merged = _apply_env_overrides(merged, env)
    return _build_config(merged, resolved_config_path)


def _resolve_config_path(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path:
        return paths.resolve_path(config_path)
    return paths.default_config_path(env=env)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, MutableMapping):
        raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
    return dict(data)


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    config_copy = _deep_merge(config, {})
    for dotted_key, (env_key, expected_type) in ENV_OVERRIDE_SPEC.items():
        if env_key not in env:
            continue
        raw_value = env[env_key]
        try:
            value = _coerce_env_value(raw_value, expected_type)
        except ValueError as exc:
            raise ConfigurationError(
                f"Environment override {env_key} has invalid value '{raw_value}': {exc}"
            ) from exc
        _assign_nested(config_copy, dotted_key.split("."), value)
    return config_copy


def _coerce_env_value(raw: str, expected_type: type) -> Any:
    cleaned = raw.strip()
    if expected_type is bool:
        lowered = cleaned.lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("expected boolean (true/false)")
    if expected_type is int:
        return int(cleaned)
    return cleaned


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        return _coerce_env_value(value, bool)
    raise TypeError(f"expected boolean, got {value!r}")


def _assign_nested(target: MutableMapping[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        validation = ValidationSettings(
            freshness_days=int(data["validation"]["freshness_days"]),
        )
        normalization = NormalizationSettings(
            strict=_as_bool(data["normalization"]["strict"]),
            reset_balance_per_section=_as_bool(data["normalization"]["reset_balance_per_section"]),
        )
        report = ReportSettings(
            highlight_threshold=int(data["report"]["highlight_threshold"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    if validation.freshness_days <= 0:
        raise ConfigurationError("validation.freshness_days must be a positive number of days.")

    return AppConfig(
        source_path=source_path,
        validation=validation,
        normalization=normalization,
        report=report,
    )
