import ast
import hashlib
import re
import textwrap
from typing import Optional

from blockforge.errors import CompileError
from blockforge.ir import Const
from blockforge.typesys import parse_number

_IDENTIFIER_RE = re.compile(r"[^0-9a-zA-Z_]")


def _sanitize_identifier(raw: str) -> str:
    """Turn an object id into a Python identifier.

    Ids that needed rewriting get a short digest suffix so two distinct ids
    never collapse onto the same name.
    """
    cleaned = _IDENTIFIER_RE.sub("_", raw)
    if not cleaned or cleaned[0].isdigit():
        cleaned = "_" + cleaned
    if cleaned != raw:
        digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()[:8]
        cleaned = f"{cleaned}_{digest}"
    return cleaned


def _number_const(value) -> Optional[Const]:
    number = parse_number(value)
    if number is None:
        return None
    if number.is_integer():
        return Const(int(number))
    return Const(number)


def _value_const(value) -> Const:
    """Lower a free-form value field: numbers, then booleans, then text."""
    if isinstance(value, bool) or value is None:
        return Const(value)
    numeric = _number_const(value)
    if numeric is not None:
        return numeric
    text = str(value)
    lowered = text.strip().lower()
    if lowered == "true":
        return Const(True)
    if lowered == "false":
        return Const(False)
    return Const(text)


def _format_syntax_error(exc: SyntaxError, source: str) -> str:
    # Line numbers are shifted by the wrapper function used for parsing.
    line = (exc.lineno or 1) - 1
    col = exc.offset or 0
    snippet = (exc.text or "").strip()
    message = f"Invalid Python syntax in code block: {exc.msg}"
    if line > 0:
        message += f"\nLine: {line}, column {col if col > 0 else 1}"
    if snippet:
        message += f"\nCode: {snippet}"
    return message


def _prepare_raw_code(code: str) -> str:
    """Validate a code block and return its dedented text."""
    body = textwrap.dedent(code).strip("\n")
    if not body.strip():
        return ""
    wrapped = "def _code_block():\n" + textwrap.indent(body, "    ")
    try:
        ast.parse(wrapped)
    except SyntaxError as exc:
        raise CompileError(_format_syntax_error(exc, wrapped)) from exc
    return body
