"""
Runtime values produced by rule evaluation.

A value is a tagged union of a signed 64-bit integer, a boolean or a string.
Equality is kind-strict: ``Int(1)`` equals neither ``Str("1")`` nor
``Bool(true)``, even though Python would compare ``1 == True``.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, model_validator

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class ValueKind(StrEnum):
    """Kinds a rule value can take."""

    INT = "int"
    BOOL = "bool"
    STR = "str"


class Value(BaseModel):
    """A typed rule value."""

    kind: ValueKind
    data: StrictBool | StrictInt | StrictStr = Field(description="Payload matching kind")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_payload(self) -> Value:
        expected = {ValueKind.INT: int, ValueKind.BOOL: bool, ValueKind.STR: str}[self.kind]
        # bool is a subclass of int, so compare exact types
        if type(self.data) is not expected:
            raise ValueError(f"{self.kind} value cannot hold {type(self.data).__name__}")
        if self.kind == ValueKind.INT and not I64_MIN <= self.data <= I64_MAX:
            raise ValueError(f"integer {self.data} is outside the 64-bit range")
        return self

    @classmethod
    def of_int(cls, data: int) -> Value:
        return cls(kind=ValueKind.INT, data=data)

    @classmethod
    def of_bool(cls, data: bool) -> Value:
        return cls(kind=ValueKind.BOOL, data=data)

    @classmethod
    def of_str(cls, data: str) -> Value:
        return cls(kind=ValueKind.STR, data=data)

    @classmethod
    def from_python(cls, data: Any) -> Value:
        """Wrap a plain ``bool``, ``int`` or ``str``.

        Raises:
            TypeError: For any other type.
        """
        if isinstance(data, Value):
            return data
        if isinstance(data, bool):
            return cls.of_bool(data)
        if isinstance(data, int):
            return cls.of_int(data)
        if isinstance(data, str):
            return cls.of_str(data)
        raise TypeError(f"Unsupported context value type: {type(data).__name__}")

    def to_python(self) -> int | bool | str:
        return self.data

    @property
    def is_int(self) -> bool:
        return self.kind == ValueKind.INT

    @property
    def is_bool(self) -> bool:
        return self.kind == ValueKind.BOOL

    @property
    def is_str(self) -> bool:
        return self.kind == ValueKind.STR

    def __str__(self) -> str:
        if self.kind == ValueKind.BOOL:
            return "true" if self.data else "false"
        if self.kind == ValueKind.STR:
            return f'"{self.data}"'
        return str(self.data)


Context = Mapping[str, Value]


def coerce_context(raw: Mapping[str, Any]) -> dict[str, Value]:
    """Build an evaluation context from plain Python values.

    Args:
        raw: Mapping of variable name to ``bool``, ``int``, ``str`` or ``Value``.

    Returns:
        A new dict of variable name -> Value.

    Raises:
        TypeError: If a value has an unsupported type.
        pydantic.ValidationError: If an integer does not fit in 64 bits.
    """
    return {str(name): Value.from_python(val) for name, val in raw.items()}
