import textwrap

from blockforge.errors import CompileError
from blockforge.ir import (
    Binary,
    Break,
    CallExpr,
    CallStmt,
    Const,
    For,
    HandlerIR,
    HandlerKind,
    If,
    ModuleIR,
    Pass,
    Range,
    RawCode,
    Return,
    Unary,
    Var,
    While,
    Yield,
    YieldFrom,
)

INDENT = "    "
RUNTIME_VAR = "rt"
SELF_VAR = "self"
HANDLER_PARAM = "event"


def comment_text(value) -> str:
    """Flatten ``value`` onto one line so it can sit in a ``#`` comment."""
    return " ".join(str(value).splitlines())


class PyGenerator:
    def generate(self, module: ModuleIR) -> str:
        """Emit one object module: a function that registers the object's handlers."""
        rt = RUNTIME_VAR
        lines = [
            f"# Object: {comment_text(module.object_id)}",
            f"def {module.function_name}({rt}):",
            f"{INDENT}{SELF_VAR} = {rt}.get_object({module.object_id!r})",
            f"{INDENT}if {SELF_VAR} is None:",
            f"{INDENT}{INDENT}return",
        ]
        for handler in module.handlers:
            lines.append("")
            lines.extend(self._emit_handler(handler, indent=1))
        lines.append("")
        lines.append("")
        lines.append(f"{module.function_name}({rt})")
        return "\n".join(lines) + "\n"

    def _emit_handler(self, handler: HandlerIR, indent: int):
        pad = INDENT * indent
        lines = [pad + f"def {handler.name}({HANDLER_PARAM}=None):"]
        lines.extend(self._emit_block(handler.body, indent + 1))

        key = self._emit_expr(handler.key)
        if handler.kind == HandlerKind.EVENT:
            lines.append(pad + f"{RUNTIME_VAR}.on({key}, {handler.name}, owner={SELF_VAR})")
        elif handler.kind == HandlerKind.TIMER:
            lines.append(pad + f"{RUNTIME_VAR}.every({key}, {handler.name}, owner={SELF_VAR})")
        elif handler.kind == HandlerKind.FUNCTION:
            lines.append(
                pad + f"{RUNTIME_VAR}.define_function({SELF_VAR}, {key}, {handler.name})"
            )
        else:
            raise CompileError(f"Unsupported handler kind: {handler.kind}")
        return lines

    def _emit_stmt(self, stmt, indent):
        pad = INDENT * indent

        if isinstance(stmt, CallStmt):
            args = ", ".join(self._emit_expr(arg) for arg in stmt.args)
            return [pad + f"{RUNTIME_VAR}.{stmt.name}({args})"]

        if isinstance(stmt, If):
            lines = [pad + f"if {self._emit_expr(stmt.condition)}:"]
            lines.extend(self._emit_block(stmt.body, indent + 1))
            if stmt.orelse:
                lines.append(pad + "else:")
                lines.extend(self._emit_block(stmt.orelse, indent + 1))
            return lines

        if isinstance(stmt, While):
            lines = [pad + f"while {self._emit_expr(stmt.condition)}:"]
            lines.extend(self._emit_block(stmt.body, indent + 1))
            return lines

        if isinstance(stmt, For):
            lines = [pad + f"for {stmt.var} in {self._emit_expr(stmt.iterable)}:"]
            lines.extend(self._emit_block(stmt.body, indent + 1))
            return lines

        if isinstance(stmt, Yield):
            return [pad + f"yield {self._emit_expr(stmt.value)}"]

        if isinstance(stmt, YieldFrom):
            return [pad + f"yield from {self._emit_expr(stmt.value)}"]

        if isinstance(stmt, Return):
            return [pad + f"return {self._emit_expr(stmt.value)}"]

        if isinstance(stmt, Break):
            return [pad + "break"]

        if isinstance(stmt, Pass):
            return [pad + "pass"]

        if isinstance(stmt, RawCode):
            return textwrap.indent(stmt.code, pad).splitlines()

        raise CompileError(f"Unsupported statement IR node: {type(stmt).__name__}")

    def _emit_block(self, stmts, indent):
        if not stmts:
            return [INDENT * indent + "pass"]
        lines = []
        for stmt in stmts:
            lines.extend(self._emit_stmt(stmt, indent))
        return lines

    def _emit_expr(self, expr):
        if isinstance(expr, Const):
            value = expr.value
            if value is None or isinstance(value, (bool, int, float, str)):
                return repr(value)
            raise CompileError(f"Unsupported constant value: {value!r}")

        if isinstance(expr, Var):
            return expr.name

        if isinstance(expr, Binary):
            return f"({self._emit_expr(expr.left)} {expr.op} {self._emit_expr(expr.right)})"

        if isinstance(expr, Unary):
            separator = " " if expr.op.isalpha() else ""
            return f"({expr.op}{separator}{self._emit_expr(expr.value)})"

        if isinstance(expr, Range):
            return "range(" + ", ".join(self._emit_expr(arg) for arg in expr.args) + ")"

        if isinstance(expr, CallExpr):
            args = ", ".join(self._emit_expr(arg) for arg in expr.args)
            return f"{RUNTIME_VAR}.{expr.name}({args})"

        raise CompileError(f"Unsupported expression IR node: {type(expr).__name__}")
