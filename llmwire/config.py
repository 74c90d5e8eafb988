"""
Typed configuration model with precedence-based loader.

Precedence (lowest to highest):
    defaults < config file (YAML) < profile overlay < env vars < explicit overrides
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any

import yaml


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class RequestConfig:
    max_tokens: int = 4096
    anthropic_version: str = "2023-06-01"
    store: bool = True


@dataclass
class SchemaConfig:
    max_depth: int = 10
    max_properties: int = 1000


@dataclass
class TransportConfig:
    timeout_seconds: float = 120.0


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class ModelEntry:
    name: str = ""
    model_id: str = ""
    provider: str = "openai"
    url: str = ""
    api_key_env: str = ""


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

@dataclass
class LLMWireConfig:
    request: RequestConfig = field(default_factory=RequestConfig)
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    models: list[ModelEntry] = field(default_factory=list)
    profiles: dict[str, dict[str, Any]] = field(default_factory=dict)

    def set_override(self, dotpath: str, value: Any) -> None:
        """Set a single value using dot notation (e.g. 'request.max_tokens')."""
        _apply_dotpath(self, dotpath, value)

    def get_model(self, name: str) -> ModelEntry:
        """
        Look up a configured model by name.

        Raises ``KeyError`` if no entry matches.
        """
        for entry in self.models:
            if entry.name == name:
                return entry
        raise KeyError(
            f"Unknown model {name!r}. Configured: {[m.name for m in self.models]}"
        )

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_dotpath(obj: Any, dotpath: str, value: Any) -> None:
    """Walk obj via dotpath and set the final attribute."""
    parts = dotpath.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    if not hasattr(obj, parts[-1]):
        raise AttributeError(f"Unknown config key: {dotpath}")
    setattr(obj, parts[-1], value)


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Recursively merge overlay into base, returning a new dict."""
    merged = dict(base)
    for k, v in overlay.items():
        if k in merged and isinstance(merged[k], dict) and isinstance(v, dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def _coerce(value: str, target_type: type) -> Any:
    """Coerce a string env value to the target type."""
    if target_type is bool:
        return value.lower() in ("1", "true", "yes", "on")
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def _build_section(cls: type, raw: dict) -> Any:
    """Build a dataclass section from a raw dict, ignoring unknown keys."""
    valid_fields = {f.name for f in fields(cls)}
    filtered = {k: v for k, v in (raw or {}).items() if k in valid_fields}
    return cls(**filtered)


# ---------------------------------------------------------------------------
# ENV var mapping
# ---------------------------------------------------------------------------

_ENV_MAP: dict[str, tuple[str, type]] = {
    "LLMWIRE_MAX_TOKENS":            ("request.max_tokens", int),
    "LLMWIRE_ANTHROPIC_VERSION":     ("request.anthropic_version", str),
    "LLMWIRE_RESPONSES_STORE":       ("request.store", bool),
    "LLMWIRE_SCHEMA_MAX_DEPTH":      ("schema.max_depth", int),
    "LLMWIRE_SCHEMA_MAX_PROPERTIES": ("schema.max_properties", int),
    "LLMWIRE_TIMEOUT":               ("transport.timeout_seconds", float),
    "LLMWIRE_LOG_LEVEL":             ("logging.level", str),
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> LLMWireConfig:
    """
    Build an LLMWireConfig by layering sources in precedence order:

        defaults  <  config file  <  profile  <  env vars  <  overrides

    Parameters
    ----------
    config_path : path to YAML config file (optional)
    profile : name of a profile to apply from the config file
    overrides : dict of dotpath -> value overrides
    """
    raw: dict[str, Any] = {}

    # --- 1. Config file ---
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.is_file():
            with p.open("r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            raw = _deep_merge(raw, file_data)

    # --- 2. Profile overlay ---
    if profile and "profiles" in raw:
        profile_data = raw.get("profiles", {}).get(profile, {})
        if profile_data:
            raw = _deep_merge(raw, profile_data)

    # --- Build sections from raw ---
    cfg = LLMWireConfig(
        request=_build_section(RequestConfig, raw.get("request", {})),
        schema=_build_section(SchemaConfig, raw.get("schema", {})),
        transport=_build_section(TransportConfig, raw.get("transport", {})),
        logging=_build_section(LoggingConfig, raw.get("logging", {})),
        models=[_build_section(ModelEntry, m) for m in raw.get("models", []) or []],
        profiles=raw.get("profiles", {}),
    )

    # --- 3. Env var overrides ---
    for env_var, (dotpath, target_type) in _ENV_MAP.items():
        val = os.environ.get(env_var)
        if val is not None:
            _apply_dotpath(cfg, dotpath, _coerce(val, target_type))

    # --- 4. Explicit overrides ---
    if overrides:
        for dotpath, value in overrides.items():
            _apply_dotpath(cfg, dotpath, value)

    return cfg
