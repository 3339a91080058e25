"""
rulexpr - S-expression rule evaluation.

Parses predicates such as ``(AND (EQUALS ${role} "admin") (IN ${tenant} 1 2 3))``
and evaluates them against a context of named int, bool and str values.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version

# Re-export commonly used types for convenience
from .core import ir
from .core.config import DEFAULT_CONFIG, RuleLangConfig, load_config
from .core.errors import ConfigError, EvalError, LexError, ParseError, RuleError
from .core.ir import Value, ValueKind, coerce_context
from .core.rule_lang import evaluate, evaluate_rule, parse_rule, tokenize


def _get_version() -> str:
    try:
        return _metadata_version("rulexpr")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "__version__",
    "ir",
    # Rule language
    "evaluate",
    "evaluate_rule",
    "parse_rule",
    "tokenize",
    # Values
    "Value",
    "ValueKind",
    "coerce_context",
    # Config
    "DEFAULT_CONFIG",
    "RuleLangConfig",
    "load_config",
    # Errors
    "RuleError",
    "LexError",
    "ParseError",
    "EvalError",
    "ConfigError",
]
