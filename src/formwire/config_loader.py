"""Configuration loader that parses and validates encoder settings from TOML."""

from __future__ import annotations

import tomllib
from dataclasses import fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .charsets import canonical_charset
from .datatypes import EncoderConfig
from .errors import ConfigurationError
from .modes import coerce_mode

__all__ = ["ConfigError", "ENV_PREFIX", "config_from_env", "load_config"]

ENV_PREFIX = "FORMWIRE_"

_ENV_KEYS = {
    "CHARSET": "default_charset",
    "MODE": "default_mode",
    "CHUNK_SIZE": "chunk_size",
    "TEXT_CONTENT_TYPE": "text_content_type",
    "BINARY_CONTENT_TYPE": "binary_content_type",
}


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


def _coerce_int(value: Any, dotted_key: str) -> int:
    """Return an int, accepting numeric strings but never booleans."""

    if isinstance(value, bool):
        raise ConfigError(f"{dotted_key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ConfigError(f"{dotted_key} must be an integer") from exc
    raise ConfigError(f"{dotted_key} must be an integer")


def _sanitize_section(raw: Dict[str, Any], name: str) -> EncoderConfig:
    """
    Coerce a raw TOML table into an :class:`EncoderConfig`.

    Parameters:
        raw (dict[str, Any]): Raw TOML section data.
        name (str): Section name used when reporting validation errors.

    Returns:
        EncoderConfig: Instance populated with values from ``raw``.

    Raises:
        ConfigError: If the section is not a table or contains invalid keys or values.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    known = {field.name for field in fields(EncoderConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Invalid keys in [{name}]: {', '.join(unknown)}")
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        dotted = f"{name}.{key}"
        if key == "chunk_size":
            cleaned[key] = _coerce_int(value, dotted)
        elif key == "default_mode":
            try:
                cleaned[key] = coerce_mode(value)
            except ConfigurationError as exc:
                raise ConfigError(f"{dotted}: {exc}") from exc
        elif isinstance(value, str):
            cleaned[key] = value.strip()
        else:
            raise ConfigError(f"{dotted} must be a string")
    return _validate(EncoderConfig(**cleaned), name)


def _validate(cfg: EncoderConfig, name: str) -> EncoderConfig:
    if cfg.chunk_size < 1:
        raise ConfigError(f"{name}.chunk_size must be >= 1")
    try:
        cfg.default_charset = canonical_charset(cfg.default_charset)
    except ConfigurationError as exc:
        raise ConfigError(f"{name}.default_charset: {exc}") from exc
    for key in ("text_content_type", "binary_content_type"):
        value = getattr(cfg, key)
        if "/" not in value:
            raise ConfigError(f"{name}.{key} must be a MIME type such as 'type/subtype'")
    return cfg


def load_config(path: str) -> EncoderConfig:
    """
    Load encoder settings from the ``[encoder]`` table of a TOML file.

    The file must be UTF-8 (a BOM is accepted). Missing tables or keys fall
    back to :class:`EncoderConfig` defaults.

    Raises:
        ConfigError: If the file is not UTF-8, TOML parsing fails, or a value is invalid.
    """

    with open(path, "rb") as handle:
        raw_bytes = handle.read()
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        raw = tomllib.loads(raw_bytes.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc

    return _sanitize_section(raw.get("encoder", {}), "encoder")


def config_from_env(
    environ: Mapping[str, str],
    base: Optional[EncoderConfig] = None,
) -> EncoderConfig:
    """Return *base* (or defaults) with ``FORMWIRE_*`` environment overrides applied."""

    cfg = base or EncoderConfig()
    overrides: Dict[str, Any] = {}
    for suffix, key in _ENV_KEYS.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value is None or not value.strip():
            continue
        overrides[key] = value
    if not overrides:
        return cfg
    current = {field.name: getattr(cfg, field.name) for field in fields(EncoderConfig)}
    merged = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in {**current, **overrides}.items()
    }
    return _sanitize_section(merged, "env")

