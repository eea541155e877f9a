import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union


class BlockKind(Enum):
    HAT = "hat"
    STACK = "stack"
    CONDITIONAL = "conditional"
    CONDITIONAL_ELSE = "conditional_else"
    VALUE_EXPR = "value_expr"
    BOOL_EXPR = "bool_expr"

    @property
    def is_expression(self) -> bool:
        return self in (BlockKind.VALUE_EXPR, BlockKind.BOOL_EXPR)

    @property
    def is_statement(self) -> bool:
        return self in (
            BlockKind.STACK,
            BlockKind.CONDITIONAL,
            BlockKind.CONDITIONAL_ELSE,
        )

    @property
    def branches(self) -> tuple[str, ...]:
        if self in (BlockKind.HAT, BlockKind.CONDITIONAL):
            return ("children",)
        if self == BlockKind.CONDITIONAL_ELSE:
            return ("children", "else_children")
        return ()


class FieldType(Enum):
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    COLOR = "color"
    ENUM = "enum"
    KEYCODE = "keycode"
    ASSET_REF = "asset-ref"
    LONG_TEXT = "long-text"
    BOOL_SOCKET = "bool-socket"


@dataclass(frozen=True)
class SocketRef:
    """Reference from a field to an expression block in the same graph."""

    uid: str


Literal = Union[int, float, str, bool, None]
FieldValue = Union[Literal, SocketRef]

_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Field types that may hold a SocketRef, and the expression kinds they accept.
SOCKET_TARGETS = {
    FieldType.BOOL_SOCKET: (BlockKind.BOOL_EXPR,),
    FieldType.NUMBER: (BlockKind.VALUE_EXPR, BlockKind.BOOL_EXPR),
    FieldType.TEXT: (BlockKind.VALUE_EXPR, BlockKind.BOOL_EXPR),
}


def accepts_socket(field_type: FieldType) -> bool:
    return field_type in SOCKET_TARGETS


def parse_number(value) -> Optional[float]:
    """Parse a number field literal, returning None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def validate_literal(
    field_type: FieldType,
    value: Literal,
    *,
    options: Sequence[str] = (),
) -> Optional[str]:
    """Return a problem description, or None when ``value`` fits ``field_type``."""
    if field_type == FieldType.NUMBER:
        # Raw editor text is kept; unparseable text is coerced at run time.
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return "expected a number or numeric text"
        return None

    if field_type in (FieldType.TEXT, FieldType.LONG_TEXT, FieldType.ASSET_REF):
        if not isinstance(value, str):
            return "expected a string"
        return None

    if field_type == FieldType.BOOLEAN:
        if not isinstance(value, bool):
            return "expected a boolean"
        return None

    if field_type == FieldType.BOOL_SOCKET:
        if value is not None and not isinstance(value, bool):
            return "expected a boolean literal, a block reference, or nothing"
        return None

    if field_type == FieldType.COLOR:
        if not isinstance(value, str) or not _COLOR_RE.match(value):
            return "expected a #rgb or #rrggbb color"
        return None

    if field_type in (FieldType.ENUM, FieldType.KEYCODE):
        if not isinstance(value, str) or value not in options:
            return f"expected one of {list(options)}"
        return None

    raise AssertionError("Unknown field type")
