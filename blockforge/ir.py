from dataclasses import dataclass
from enum import Enum
from typing import List, Union


class HandlerKind(Enum):
    EVENT = "event"
    TIMER = "timer"
    FUNCTION = "function"


# Expressions

class Expr:
    pass


@dataclass(frozen=True)
class Const(Expr):
    value: Union[int, float, str, bool, None]


@dataclass(frozen=True)
class Var(Expr):
    name: str


@dataclass(frozen=True)
class Unary(Expr):
    op: str
    value: Expr


@dataclass(frozen=True)
class Binary(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Range(Expr):
    args: List[Expr]


@dataclass(frozen=True)
class CallExpr(Expr):
    """Call of a runtime library method, ``rt.<name>(*args)``."""

    name: str
    args: List[Expr]


# Statements

class Stmt:
    pass


@dataclass(frozen=True)
class CallStmt(Stmt):
    name: str
    args: List[Expr]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    body: List[Stmt]
    orelse: List[Stmt]


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: List[Stmt]


@dataclass(frozen=True)
class For(Stmt):
    var: str
    iterable: Expr
    body: List[Stmt]


@dataclass(frozen=True)
class Yield(Stmt):
    """Suspend the handler on the awaitable produced by ``value``."""

    value: Expr


@dataclass(frozen=True)
class YieldFrom(Stmt):
    value: Expr


@dataclass(frozen=True)
class Break(Stmt):
    pass


@dataclass(frozen=True)
class Pass(Stmt):
    pass


@dataclass(frozen=True)
class Return(Stmt):
    value: Expr


@dataclass(frozen=True)
class RawCode(Stmt):
    code: str


@dataclass(frozen=True)
class HandlerIR:
    name: str
    kind: HandlerKind
    key: Expr
    body: List[Stmt]


@dataclass(frozen=True)
class ModuleIR:
    object_id: str
    function_name: str
    handlers: List[HandlerIR]
