"""
Rule expression AST for rulexpr.

Node set:
- Operators: AND, OR, MOD, EQUALS, IN, each holding an ordered tuple of
  argument nodes. Arity is validated by the evaluator, not here, so a
  tree such as ``(MOD 1)`` can be built and only fails when evaluated.
- Leaves: Num (decimal text), Str (string text), Var (context lookup),
  Bool (literal spelling; no grammar production builds it).

Every node renders back to rule syntax via ``str()``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from rulexpr.core.config import RuleLangConfig
    from rulexpr.core.ir.values import Context, Value


class Operator(StrEnum):
    """Operator keywords accepted after an opening parenthesis."""

    AND = "AND"
    OR = "OR"
    MOD = "MOD"
    EQUALS = "EQUALS"
    IN = "IN"


class _RuleNode(BaseModel):
    """Shared behaviour for all rule nodes."""

    model_config = ConfigDict(frozen=True)

    def eval(self, context: Context, config: RuleLangConfig | None = None) -> Value:
        """Evaluate this node against a context.

        Shorthand for :func:`rulexpr.core.rule_lang.evaluator.evaluate`.
        """
        from rulexpr.core.rule_lang.evaluator import evaluate

        return evaluate(self, context, config)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


class Num(_RuleNode):
    """Decimal integer literal, kept as text until evaluation."""

    text: str = Field(description="Decimal digits")

    def __str__(self) -> str:
        return self.text


class Str(_RuleNode):
    """String literal."""

    text: str = Field(description="Unquoted string body")

    def __str__(self) -> str:
        escaped = self.text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'


class Var(_RuleNode):
    """Reference to a context variable: ${name}."""

    name: str = Field(description="Variable name")

    def __str__(self) -> str:
        return "${" + self.name + "}"


class Bool(_RuleNode):
    """Boolean literal. True iff the text is "true" or "1", ignoring case."""

    text: str = Field(description="Literal spelling")

    def __str__(self) -> str:
        return self.text


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class _OperatorNode(_RuleNode):
    operator: ClassVar[Operator]

    args: tuple[Rule, ...] = Field(default=(), description="Arguments in source order")

    def __str__(self) -> str:
        if not self.args:
            return f"({self.operator.value})"
        args_str = " ".join(str(a) for a in self.args)
        return f"({self.operator.value} {args_str})"


class And(_OperatorNode):
    """Logical AND over zero or more arguments."""

    operator: ClassVar[Operator] = Operator.AND


class Or(_OperatorNode):
    """Logical OR over zero or more arguments."""

    operator: ClassVar[Operator] = Operator.OR


class Mod(_OperatorNode):
    """Integer remainder of exactly two arguments."""

    operator: ClassVar[Operator] = Operator.MOD


class Equals(_OperatorNode):
    """Kind-strict equality of exactly two arguments."""

    operator: ClassVar[Operator] = Operator.EQUALS


class In(_OperatorNode):
    """Membership of the first argument among the rest."""

    operator: ClassVar[Operator] = Operator.IN


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Rule = And | Or | Mod | Equals | In | Num | Str | Var | Bool

OPERATOR_NODES: dict[Operator, type[_OperatorNode]] = {
    Operator.AND: And,
    Operator.OR: Or,
    Operator.MOD: Mod,
    Operator.EQUALS: Equals,
    Operator.IN: In,
}

# Rebuild models for recursive forward references
And.model_rebuild()
Or.model_rebuild()
Mod.model_rebuild()
Equals.model_rebuild()
In.model_rebuild()
