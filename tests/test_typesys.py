import pytest

from blockforge.typesys import (
    BlockKind,
    FieldType,
    accepts_socket,
    parse_number,
    validate_literal,
)


def test_block_kind_branches():
    assert BlockKind.CONDITIONAL.branches == ("children",)
    assert BlockKind.CONDITIONAL_ELSE.branches == ("children", "else_children")
    assert BlockKind.STACK.branches == ()
    assert BlockKind.HAT.branches == ("children",)


def test_block_kind_statement_and_expression_partition():
    statements = {kind for kind in BlockKind if kind.is_statement}
    expressions = {kind for kind in BlockKind if kind.is_expression}
    assert statements == {BlockKind.STACK, BlockKind.CONDITIONAL, BlockKind.CONDITIONAL_ELSE}
    assert expressions == {BlockKind.VALUE_EXPR, BlockKind.BOOL_EXPR}
    assert not BlockKind.HAT.is_statement
    assert not BlockKind.HAT.is_expression


def test_parse_number_accepts_numeric_text():
    assert parse_number("3") == 3.0
    assert parse_number(" 2.5 ") == 2.5
    assert parse_number(7) == 7.0


def test_parse_number_rejects_non_numbers():
    assert parse_number("abc") is None
    assert parse_number(True) is None
    assert parse_number(None) is None
    assert parse_number("nan") is None
    assert parse_number(float("inf")) is None


def test_number_fields_keep_raw_editor_text():
    assert validate_literal(FieldType.NUMBER, "abc") is None
    assert validate_literal(FieldType.NUMBER, 4) is None
    assert validate_literal(FieldType.NUMBER, True) == "expected a number or numeric text"


def test_color_fields_require_hex_colors():
    assert validate_literal(FieldType.COLOR, "#fff") is None
    assert validate_literal(FieldType.COLOR, "#A1B2C3") is None
    assert validate_literal(FieldType.COLOR, "red") is not None


def test_enum_fields_check_options():
    assert validate_literal(FieldType.ENUM, "+", options=("+", "-")) is None
    problem = validate_literal(FieldType.ENUM, "*", options=("+", "-"))
    assert problem == "expected one of ['+', '-']"


def test_bool_socket_literals():
    assert validate_literal(FieldType.BOOL_SOCKET, None) is None
    assert validate_literal(FieldType.BOOL_SOCKET, False) is None
    assert validate_literal(FieldType.BOOL_SOCKET, "yes") is not None


def test_socket_capable_field_types():
    assert accepts_socket(FieldType.BOOL_SOCKET)
    assert accepts_socket(FieldType.NUMBER)
    assert accepts_socket(FieldType.TEXT)
    assert not accepts_socket(FieldType.COLOR)
    assert not accepts_socket(FieldType.ENUM)


def test_validate_literal_rejects_unknown_field_type():
    with pytest.raises(AssertionError, match="Unknown field type"):
        validate_literal(object(), 1)
