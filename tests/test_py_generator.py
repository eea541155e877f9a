import pytest

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
    Range,
    RawCode,
    Return,
    Unary,
    Var,
    While,
    Yield,
    YieldFrom,
)
from blockforge.py_generator import PyGenerator


def emit_handler(*body, kind=HandlerKind.EVENT, key=Const("start")):
    module = ModuleIR(
        object_id="crate",
        function_name="_script_crate",
        handlers=[HandlerIR(name="h", kind=kind, key=key, body=list(body))],
    )
    return PyGenerator().generate(module)


def test_generate_nested_control_flow():
    source = emit_handler(
        For(
            var="_loop1",
            iterable=Range([CallExpr("to_count", [Const(2)])]),
            body=[
                If(
                    condition=Binary("and", Const(True), Unary("not", Var("flag"))),
                    body=[Break()],
                    orelse=[CallStmt("print", [Const("x")])],
                ),
            ],
        ),
        While(condition=Const(False), body=[]),
    )

    assert "        for _loop1 in range(rt.to_count(2)):" in source
    assert "            if (True and (not flag)):" in source
    assert "                break" in source
    assert "            else:\n                rt.print('x')" in source
    assert "        while False:\n            pass" in source


def test_generate_suspension_statements():
    source = emit_handler(
        Yield(CallExpr("wait", [Const(0.5)])),
        YieldFrom(CallExpr("call_function", [Var("self"), Const("f")])),
        Return(Const(None)),
    )

    assert "        yield rt.wait(0.5)" in source
    assert "        yield from rt.call_function(self, 'f')" in source
    assert "        return None" in source


def test_generate_handler_registration_per_kind():
    assert "    rt.on('start', h, owner=self)" in emit_handler()
    assert "    rt.every(1.5, h, owner=self)" in emit_handler(kind=HandlerKind.TIMER, key=Const(1.5))
    assert "    rt.define_function(self, 'jump', h)" in emit_handler(
        kind=HandlerKind.FUNCTION, key=Const("jump")
    )


def test_generate_raw_code_is_reindented():
    source = emit_handler(RawCode(code="x = 1\nif x:\n    rt.print(x)"))
    assert "        x = 1\n        if x:\n            rt.print(x)\n" in source


def test_string_constants_are_repr_escaped():
    source = emit_handler(CallStmt("print", [Const("it's \"quoted\"\n")]))
    assert "rt.print('it\\'s \"quoted\"\\n')" in source


def test_generate_rejects_unsupported_constant():
    with pytest.raises(CompileError, match="Unsupported constant value"):
        emit_handler(CallStmt("print", [Const([1, 2])]))


def test_generate_guards_missing_object():
    source = emit_handler()
    assert source.startswith(
        "# Object: crate\n"
        "def _script_crate(rt):\n"
        "    self = rt.get_object('crate')\n"
        "    if self is None:\n"
        "        return\n"
    )
    assert source.endswith("\n\n_script_crate(rt)\n")


def test_object_id_line_breaks_cannot_escape_the_header_comment():
    module = ModuleIR(object_id="crate\nrt = None\r\nx", function_name="_script_crate", handlers=[])
    source = PyGenerator().generate(module)

    assert source.splitlines()[0] == "# Object: crate rt = None x"
    assert "    self = rt.get_object('crate\\nrt = None\\r\\nx')" in source
    compile(source, "<module>", "exec")
