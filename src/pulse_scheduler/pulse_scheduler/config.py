# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Central workflow map configuration.

All values have sensible defaults and can be overridden via environment variables
using the ``PULSE_WMAP_`` prefix:

  PULSE_WMAP_LOG_LEVEL           Log level (default: INFO)
  PULSE_WMAP_STRICT_NAMESPACES   Reject metric namespaces that are not
                                 slash-delimited paths (default: true)
  PULSE_WMAP_OUTPUT_FORMAT       Default CLI output format, json or yaml
                                 (default: yaml)
  PULSE_WMAP_JSON_INDENT         Indent used by the CLI when writing JSON; 0 puts
                                 each value on its own line (default: 2)
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOGGER = logging.getLogger(__name__)

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"})
_VALID_FORMATS = frozenset({"json", "yaml"})


class WmapConfig(BaseSettings):
    """Workflow map configuration.

    Instantiate with ``WmapConfig()`` to read defaults and any
    ``PULSE_WMAP_*`` environment variable overrides automatically.
    """

    model_config = SettingsConfigDict(env_prefix="PULSE_WMAP_")

    # ── Logging ────────────────────────────────────────────────────────────
    log_level: str = "INFO"

    # ── Model ──────────────────────────────────────────────────────────────
    strict_namespaces: bool = True

    # ── Output ─────────────────────────────────────────────────────────────
    output_format: str = "yaml"
    json_indent: int = 2

    # ── Validators ─────────────────────────────────────────────────────────

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level={v!r} is not a valid log level. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return v.upper()

    @field_validator("output_format")
    @classmethod
    def _valid_output_format(cls, v: str) -> str:
        if v.lower() not in _VALID_FORMATS:
            raise ValueError(
                f"output_format={v!r} is not supported. "
                f"Valid values: {', '.join(sorted(_VALID_FORMATS))}"
            )
        return v.lower()

    @field_validator("json_indent")
    @classmethod
    def _valid_json_indent(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"json_indent={v} must be >= 0")
        return v


# ── Module-level singleton ─────────────────────────────────────────────────────

_config: Optional[WmapConfig] = None


def get_config() -> WmapConfig:
    """Return the process-wide config singleton.

    Creates a fresh ``WmapConfig`` on first call (reading env vars).
    Subsequent calls return the cached instance.
    """
    global _config
    if _config is None:
        _config = WmapConfig()
    return _config


def load_and_validate_config() -> WmapConfig:
    """Build, validate, cache and return the config.

    Raises ``pydantic.ValidationError`` if any value is invalid.
    """
    global _config
    cfg = WmapConfig()
    _config = cfg
    return cfg


class _NamespaceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PULSE_WMAP_", extra="ignore")

    strict_namespaces: bool = True


def strict_namespaces() -> bool:
    """Return the ``strict_namespaces`` setting without validating the others.

    Library code reads this while decoding payloads, so an unrelated bad
    ``PULSE_WMAP_*`` value must not fail it. An unparseable value falls back
    to strict.
    """
    if _config is not None:
        return _config.strict_namespaces
    try:
        return _NamespaceSettings().strict_namespaces
    except ValidationError:
        LOGGER.warning("Invalid PULSE_WMAP_STRICT_NAMESPACES, enforcing namespace format")
        return True
