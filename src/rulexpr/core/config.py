"""
Rule language configuration.

Parses the [rules] section from a TOML file and provides typed settings
for the parser and evaluator.

Example rulexpr.toml:

    [rules]
    max_args = 500
    max_depth = 200
    allow_trailing_tokens = false
    symmetric_or = false
    in_includes_last = false
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rulexpr.core.errors import ConfigError

logger = logging.getLogger(__name__)


class RuleLangConfig(BaseModel):
    """Parser and evaluator settings.

    The defaults keep the historical rule semantics. The two
    boolean switches ``symmetric_or`` and ``in_includes_last`` opt in to
    corrected OR and IN behaviour.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_args: int = Field(
        default=10000, gt=0, description="Parser iteration cap per argument list"
    )
    max_depth: int = Field(
        default=200, gt=0, description="Deepest operator nesting a rule may use"
    )
    allow_trailing_tokens: bool = Field(
        default=False, description="Ignore tokens after the top-level expression"
    )
    symmetric_or: bool = Field(
        default=False, description="OR short-circuits on any nonzero int or true"
    )
    in_includes_last: bool = Field(
        default=False, description="IN also compares against its last argument"
    )


DEFAULT_CONFIG = RuleLangConfig()


def config_from_dict(data: dict[str, Any]) -> RuleLangConfig:
    """Build a config from an already-parsed ``[rules]`` table."""
    try:
        return RuleLangConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid [rules] configuration: {e}") from e


def load_config(path: Path) -> RuleLangConfig:
    """Load settings from the ``[rules]`` table of a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        The parsed config; defaults when the file has no ``[rules]`` table.

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or holds
            unknown keys or invalid values.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    rules = data.get("rules", {})
    if not isinstance(rules, dict):
        raise ConfigError(f"[rules] in {path} must be a table")
    if not rules:
        logger.debug("No [rules] table in %s, using defaults", path)

    return config_from_dict(rules)
