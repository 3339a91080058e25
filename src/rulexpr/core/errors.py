"""
Error types for rule scanning, parsing, evaluation and configuration.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class RuleError(Exception):
    """Base exception for all rulexpr errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class LexError(RuleError):
    """
    Raised when the lexer meets a character it cannot accept.

    Examples:
    - ``${user-id}``: '-' is not allowed in a variable name
    - ``${}``: empty variable name
    """

    pass


class ParseErrorKind(StrEnum):
    """Categories of parse failures."""

    EMPTY_RULE = "empty_rule"
    UNSUPPORTED_OPERATOR = "unsupported_operator"
    UNEXPECTED_TOKEN = "unexpected_token"
    FORMAT_NOT_MATCHED = "format_not_matched"
    TRAILING_TOKENS = "trailing_tokens"


class ParseError(RuleError):
    """
    Raised when a token stream does not match the rule grammar.

    Examples:
    - ``(XOR 1 2)``: unsupported operator
    - ``(AND 1 2``: argument list never closed
    - ``(AND) (OR)``: tokens after the top-level expression
    """

    def __init__(
        self,
        message: str,
        kind: ParseErrorKind,
        context: Optional["ErrorContext"] = None,
    ):
        self.kind = kind
        super().__init__(message, context)


class EvalErrorKind(StrEnum):
    """Categories of evaluation failures."""

    NOT_ENOUGH_ARGS = "not_enough_args"
    TOO_MANY_ARGS = "too_many_args"
    ARG_NOT_CORRECT = "arg_not_correct"
    FORMAT_NOT_MATCHED = "format_not_matched"
    EVAL_NUM_FAILED = "eval_num_failed"
    DIVISION_BY_ZERO = "division_by_zero"
    UNKNOWN_NODE = "unknown_node"


class EvalError(RuleError):
    """
    Raised when a parsed rule cannot be reduced to a value.

    Examples:
    - ``(MOD 1)``: wrong number of arguments
    - ``(MOD "a" 2)``: operand is not an integer
    - ``(MOD 10 0)``: modulo by zero
    """

    def __init__(self, message: str, kind: EvalErrorKind):
        self.kind = kind
        super().__init__(message)


class ConfigError(RuleError):
    """Raised when a configuration file cannot be read or is invalid."""

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside a rule's source text.

    Attributes:
        source: The full rule text being processed
        pos: Zero-based character offset of the offending character
    """

    source: str
    pos: int

    @property
    def line(self) -> int:
        """1-indexed line containing ``pos``."""
        return self.source.count("\n", 0, self.pos) + 1

    @property
    def column(self) -> int:
        """1-indexed column of ``pos`` within its line."""
        return self.pos - (self.source.rfind("\n", 0, self.pos) + 1) + 1

    def format(self) -> str:
        """
        Format the location with a snippet and caret marker.

        Returns:
            A string like::

                position 9
                  (AND ${a-b})
                          ^
        """
        lines = self.source.split("\n")
        text = lines[self.line - 1] if self.line <= len(lines) else ""
        marker = " " * (self.column - 1) + "^"
        return f"position {self.pos}\n  {text}\n  {marker}"
