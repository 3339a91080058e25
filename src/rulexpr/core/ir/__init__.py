"""
rulexpr intermediate representation: rule AST nodes and runtime values.
"""

from .rules import OPERATOR_NODES, And, Bool, Equals, In, Mod, Num, Operator, Or, Rule, Str, Var
from .values import Context, Value, ValueKind, coerce_context

__all__ = [
    # AST
    "Rule",
    "Operator",
    "OPERATOR_NODES",
    "And",
    "Or",
    "Mod",
    "Equals",
    "In",
    "Num",
    "Str",
    "Var",
    "Bool",
    # Values
    "Context",
    "Value",
    "ValueKind",
    "coerce_context",
]
