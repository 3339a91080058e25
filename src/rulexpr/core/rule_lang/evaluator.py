"""
Rule evaluator for the rule expression language.

Evaluates rule AST nodes against a read-only context of variable values.
Pure evaluation: no I/O, no side effects, the context is never written.

Default semantics (see RuleLangConfig to change them):
- OR short-circuits to true on an int equal to exactly 1, or on a false
  bool. This is not the mirror image of AND.
- IN compares its probe against arguments 1 .. len-2, leaving out the last
  argument.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from rulexpr.core.config import DEFAULT_CONFIG, RuleLangConfig
from rulexpr.core.errors import EvalError, EvalErrorKind
from rulexpr.core.ir.rules import And, Bool, Equals, In, Mod, Num, Or, Rule, Str, Var
from rulexpr.core.ir.values import I64_MAX, I64_MIN, Context, Value, ValueKind

logger = logging.getLogger(__name__)

_TRUE = Value.of_bool(True)
_FALSE = Value.of_bool(False)

# Optional sign and ASCII digits only
_NUM_LITERAL = re.compile(r"[+-]?[0-9]+")
# Digits in I64_MAX, not counting leading zeros
_I64_DIGITS = len(str(I64_MAX))


def evaluate(rule: Rule, context: Context, config: RuleLangConfig | None = None) -> Value:
    """Evaluate a rule against a context.

    Args:
        rule: Parsed rule AST.
        context: Mapping of variable name -> Value. Only read.
        config: Evaluator settings; defaults to ``DEFAULT_CONFIG``.

    Returns:
        The resulting Value.

    Raises:
        EvalError: If an operator has the wrong arity or operand kinds, a
            number literal is invalid, MOD divides by zero, or the tree
            nests too deeply to walk.
    """
    try:
        result = _interpret(rule, context, config or DEFAULT_CONFIG)
    except RecursionError as e:
        raise EvalError(
            "Rule nests too deeply to evaluate", EvalErrorKind.FORMAT_NOT_MATCHED
        ) from e
    logger.debug("Evaluated %s -> %s", rule, result)
    return result


def _interpret(rule: Rule, ctx: Context, config: RuleLangConfig) -> Value:
    """Dispatch evaluation to the appropriate handler."""
    if isinstance(rule, Num):
        return _interpret_num(rule)

    if isinstance(rule, Str):
        return Value.of_str(rule.text)

    if isinstance(rule, Var):
        return ctx.get(rule.name, _FALSE)

    if isinstance(rule, Bool):
        return Value.of_bool(rule.text.casefold() in ("true", "1"))

    if isinstance(rule, And):
        return _interpret_and(rule, ctx, config)

    if isinstance(rule, Or):
        return _interpret_or(rule, ctx, config)

    if isinstance(rule, Mod):
        return _interpret_mod(rule, ctx, config)

    if isinstance(rule, Equals):
        left, right = _binary_operands(rule.args, "EQUALS", ctx, config)
        return Value.of_bool(left == right)

    if isinstance(rule, In):
        return _interpret_in(rule, ctx, config)

    raise EvalError(f"Unknown rule node: {type(rule).__name__}", EvalErrorKind.UNKNOWN_NODE)


def _interpret_num(rule: Num) -> Value:
    if _NUM_LITERAL.fullmatch(rule.text) is None:
        raise EvalError(
            f"Number literal {rule.text!r} is not a decimal integer",
            EvalErrorKind.EVAL_NUM_FAILED,
        )
    if len(rule.text.lstrip("+-").lstrip("0")) <= _I64_DIGITS:
        number = int(rule.text)
        if I64_MIN <= number <= I64_MAX:
            return Value.of_int(number)
    raise EvalError(
        f"Number literal {rule.text!r} does not fit in 64 bits",
        EvalErrorKind.EVAL_NUM_FAILED,
    )


def _require_logical(value: Value, op: str) -> None:
    if value.kind == ValueKind.STR:
        raise EvalError(
            f"{op} operands must be int or bool, got str {value}",
            EvalErrorKind.FORMAT_NOT_MATCHED,
        )


def _interpret_and(rule: And, ctx: Context, config: RuleLangConfig) -> Value:
    """False on the first int 0 or false bool, otherwise true."""
    for arg in rule.args:
        value = _interpret(arg, ctx, config)
        _require_logical(value, "AND")
        if not value.data:
            logger.debug("AND short-circuits on %s", value)
            return _FALSE
    return _TRUE


def _interpret_or(rule: Or, ctx: Context, config: RuleLangConfig) -> Value:
    """True on the first int equal to 1 or false bool, otherwise false."""
    for arg in rule.args:
        value = _interpret(arg, ctx, config)
        _require_logical(value, "OR")
        if config.symmetric_or:
            hit = bool(value.data)
        elif value.kind == ValueKind.INT:
            hit = value.data == 1
        else:
            hit = value.data is False
        if hit:
            logger.debug("OR short-circuits on %s", value)
            return _TRUE
    return _FALSE


def _interpret_mod(rule: Mod, ctx: Context, config: RuleLangConfig) -> Value:
    """Remainder truncated toward zero, taking the sign of the dividend."""
    left, right = _binary_operands(rule.args, "MOD", ctx, config)
    if left.kind != ValueKind.INT or right.kind != ValueKind.INT:
        raise EvalError(
            f"MOD operands must both be int, got {left.kind} and {right.kind}",
            EvalErrorKind.ARG_NOT_CORRECT,
        )
    if right.data == 0:
        raise EvalError("Modulo by zero", EvalErrorKind.DIVISION_BY_ZERO)

    remainder = abs(left.data) % abs(right.data)
    return Value.of_int(-remainder if left.data < 0 else remainder)


def _interpret_in(rule: In, ctx: Context, config: RuleLangConfig) -> Value:
    if len(rule.args) < 2:
        raise EvalError(
            f"IN takes at least 2 arguments, got {len(rule.args)}",
            EvalErrorKind.NOT_ENOUGH_ARGS,
        )
    probe = _interpret(rule.args[0], ctx, config)
    end = len(rule.args) if config.in_includes_last else len(rule.args) - 1
    for arg in rule.args[1:end]:
        if _interpret(arg, ctx, config) == probe:
            return _TRUE
    return _FALSE


def _binary_operands(
    args: Sequence[Rule], op: str, ctx: Context, config: RuleLangConfig
) -> tuple[Value, Value]:
    """Evaluate the two arguments of a fixed-arity operator."""
    if len(args) < 2:
        raise EvalError(
            f"{op} takes exactly 2 arguments, got {len(args)}",
            EvalErrorKind.NOT_ENOUGH_ARGS,
        )
    if len(args) > 2:
        raise EvalError(
            f"{op} takes exactly 2 arguments, got {len(args)}",
            EvalErrorKind.TOO_MANY_ARGS,
        )
    return _interpret(args[0], ctx, config), _interpret(args[1], ctx, config)
