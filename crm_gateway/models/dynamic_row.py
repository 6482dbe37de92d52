from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

"""Schema-less query result rows.

A DynamicRow maps column name -> DynamicValue in result-column order. A value
is one of three variants: NullValue (SQL NULL), TextValue (decoded text) or
OpaqueValue (anything that could not be decoded as text, rendered as a fixed
placeholder). Type fidelity is intentionally not preserved.
"""

__all__ = [
    "DynamicRow",
    "DynamicValue",
    "NullValue",
    "OpaqueValue",
    "OPAQUE_PLACEHOLDER",
    "TextValue",
]

OPAQUE_PLACEHOLDER = "Non-string value"


@dataclass(frozen=True)
class NullValue:
    def to_json(self) -> None:
        return None


@dataclass(frozen=True)
class TextValue:
    text: str

    def to_json(self) -> str:
        return self.text


@dataclass(frozen=True)
class OpaqueValue:
    placeholder: str = OPAQUE_PLACEHOLDER

    def to_json(self) -> str:
        return self.placeholder


DynamicValue = Union[NullValue, TextValue, OpaqueValue]


@dataclass
class DynamicRow:
    values: dict[str, DynamicValue] = field(default_factory=dict)

    def set(self, column: str, value: DynamicValue) -> None:
        # Duplicate column names: later column overwrites, first position is kept.
        self.values[column] = value

    def columns(self) -> list[str]:
        return list(self.values)

    def to_json(self) -> dict[str, Any]:
        return {name: value.to_json() for name, value in self.values.items()}
