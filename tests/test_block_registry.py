import pytest

from blockforge.block_registry import BlockDefinition, BlockRegistry, Category, default_registry
from blockforge.errors import UnknownBlockError
from blockforge.typesys import BlockKind, FieldType


def test_default_registry_lists_categories_in_catalog_order():
    registry = default_registry()
    ids = [category.id for category in registry.list_by_category()]
    assert ids == [
        "events",
        "control",
        "motion",
        "physics",
        "appearance",
        "sound",
        "ui",
        "messages",
        "math",
        "variables",
        "models",
        "advanced",
    ]


def test_lookup_returns_definition_with_fields():
    definition = default_registry().lookup("glide_to")
    assert definition.kind == BlockKind.STACK
    assert [spec.name for spec in definition.fields] == ["x", "y", "z", "sec"]
    assert definition.field("sec").default == 1


def test_lookup_unknown_block_raises():
    with pytest.raises(UnknownBlockError, match="Unknown block id 'teleport_home'"):
        default_registry().lookup("teleport_home")


def test_every_listed_block_is_found_by_lookup():
    registry = default_registry()
    for category in registry.list_by_category():
        for definition in category.blocks:
            assert registry.lookup(definition.id) is definition
            assert definition.category == category.id


def test_socket_defaults_are_neutral_for_their_block():
    registry = default_registry()
    assert registry.lookup("if").field("cond").socket_default is True
    assert registry.lookup("while").field("cond").socket_default is False
    assert registry.lookup("and").field("a").socket_default is True
    assert registry.lookup("or").field("a").socket_default is False
    assert registry.lookup("if").field("cond").type == FieldType.BOOL_SOCKET


def test_enum_defaults_are_among_their_options():
    for block_id in default_registry().block_ids():
        definition = default_registry().lookup(block_id)
        for spec in definition.fields:
            if spec.type in (FieldType.ENUM, FieldType.KEYCODE):
                assert spec.default in spec.options, (block_id, spec.name)


def test_register_category_rejects_duplicate_block_ids():
    block = BlockDefinition(id="ping", category="misc", label="Ping", kind=BlockKind.STACK)
    registry = BlockRegistry([Category(id="misc", name="Misc", color="#000000", blocks=(block,))])
    with pytest.raises(ValueError, match="already declared"):
        registry.register_category(
            Category(id="misc", name="Misc", color="#000000", blocks=(block,))
        )
    assert len(registry) == 1


def test_register_category_rejects_mismatched_category():
    block = BlockDefinition(id="ping", category="other", label="Ping", kind=BlockKind.STACK)
    with pytest.raises(ValueError, match="listed under 'misc'"):
        BlockRegistry([Category(id="misc", name="Misc", color="#000000", blocks=(block,))])
