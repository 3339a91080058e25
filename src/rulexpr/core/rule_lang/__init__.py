"""
rulexpr rule language.

Lexer, parser and evaluator for S-expression rules such as
``(AND (EQUALS ${role} "admin") (IN ${tenant} 1 2 3))``.

Usage:
    from rulexpr.core.rule_lang import evaluate, parse_rule
    from rulexpr.core.ir import coerce_context

    rule = parse_rule("(MOD ${n} 3)")
    result = evaluate(rule, coerce_context({"n": 10}))
    # result == Value.of_int(1)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rulexpr.core.config import RuleLangConfig
from rulexpr.core.ir.values import Value, coerce_context
from rulexpr.core.rule_lang.evaluator import evaluate
from rulexpr.core.rule_lang.lexer import Lexer, Token, TokenKind, tokenize
from rulexpr.core.rule_lang.parser import Parser, parse_rule


def evaluate_rule(
    source: str,
    context: Mapping[str, Any],
    config: RuleLangConfig | None = None,
) -> Value:
    """Parse and evaluate a rule in one step.

    ``context`` may hold plain ``bool``/``int``/``str`` values or ``Value``
    instances.
    """
    return evaluate(parse_rule(source, config), coerce_context(context), config)


__all__ = [
    "Lexer",
    "Parser",
    "Token",
    "TokenKind",
    "evaluate",
    "evaluate_rule",
    "parse_rule",
    "tokenize",
]
