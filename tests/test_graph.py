import copy

import pytest

from blockforge.errors import InvalidFieldValueError, InvalidStructureError, UnknownBlockError
from blockforge.graph import Placement, ScriptGraph, ScriptGraphStore
from blockforge.typesys import SocketRef


def _snapshot(graph: ScriptGraph):
    return copy.deepcopy(graph.serialize())


def test_create_instance_uses_defaults_and_becomes_root():
    graph = ScriptGraph()
    wait = graph.create_instance("wait")
    assert wait.values == {"sec": 1}
    assert graph.roots == [wait.uid]


def test_create_instance_rejects_unknown_block():
    graph = ScriptGraph()
    with pytest.raises(UnknownBlockError):
        graph.create_instance("fly_away")
    assert len(graph) == 0


def test_create_instance_rejects_bad_literal():
    graph = ScriptGraph()
    with pytest.raises(InvalidFieldValueError, match="expected a #rgb or #rrggbb color"):
        graph.create_instance("set_color", {"color": "blue"})
    assert graph.roots == []


def test_attach_child_moves_statement_into_branch():
    graph = ScriptGraph()
    hat = graph.create_instance("on_start")
    repeat = graph.create_instance("repeat", {"n": 3})
    move = graph.create_instance("move_by", {"x": 1})

    graph.attach_child(hat.uid, "children", 0, repeat.uid)
    graph.attach_child(repeat.uid, "children", 0, move.uid)

    assert graph.roots == [hat.uid]
    assert hat.children == [repeat.uid]
    assert repeat.children == [move.uid]
    assert graph.parent_of(move.uid) == Placement(parent=repeat.uid, branch="children")
    assert graph.ancestors(move.uid) == [repeat.uid, hat.uid]


def test_attach_child_rejects_missing_branch_and_leaves_graph_unchanged():
    graph = ScriptGraph()
    wait = graph.create_instance("wait")
    move = graph.create_instance("move_by")
    before = _snapshot(graph)

    with pytest.raises(InvalidStructureError, match="has no 'children' branch"):
        graph.attach_child(wait.uid, "children", 0, move.uid)
    with pytest.raises(InvalidStructureError, match="has no 'else_children' branch"):
        graph.attach_child(graph.create_instance("if").uid, "else_children", 0, move.uid)

    assert _snapshot(graph)[:2] == before


def test_attach_child_rejects_expressions_and_hats():
    graph = ScriptGraph()
    loop = graph.create_instance("forever")
    value = graph.create_instance("random")
    hat = graph.create_instance("on_update")

    with pytest.raises(InvalidStructureError, match="cannot be placed in a branch"):
        graph.attach_child(loop.uid, "children", 0, value.uid)
    with pytest.raises(InvalidStructureError, match="cannot be placed in a branch"):
        graph.attach_child(loop.uid, "children", 0, hat.uid)
    assert loop.children == []


def test_attach_child_rejects_cycles():
    graph = ScriptGraph()
    outer = graph.create_instance("forever")
    inner = graph.create_instance("repeat")
    graph.attach_child(outer.uid, "children", 0, inner.uid)
    before = _snapshot(graph)

    with pytest.raises(InvalidStructureError, match="would create a cycle"):
        graph.attach_child(inner.uid, "children", 0, outer.uid)
    with pytest.raises(InvalidStructureError, match="would create a cycle"):
        graph.attach_child(outer.uid, "children", 0, outer.uid)

    assert _snapshot(graph) == before


def test_detach_returns_block_to_roots_with_its_subtree():
    graph = ScriptGraph()
    hat = graph.create_instance("on_start")
    loop = graph.create_instance("forever")
    wait = graph.create_instance("wait")
    graph.attach_child(hat.uid, "children", 0, loop.uid)
    graph.attach_child(loop.uid, "children", 0, wait.uid)

    graph.detach(loop.uid)

    assert hat.children == []
    assert graph.roots == [hat.uid, loop.uid]
    assert loop.children == [wait.uid]
    assert graph.parent_of(loop.uid) is None


def test_delete_re_roots_children_and_references():
    graph = ScriptGraph()
    branch = graph.create_instance("if")
    move = graph.create_instance("move_by")
    cond = graph.create_instance("is_grounded")
    graph.attach_child(branch.uid, "children", 0, move.uid)
    graph.set_field(branch.uid, "cond", SocketRef(cond.uid))

    graph.delete(branch.uid)

    assert branch.uid not in graph
    assert set(graph.roots) == {move.uid, cond.uid}
    assert graph.parent_of(move.uid) is None
    assert graph.parent_of(cond.uid) is None


def test_set_field_socket_reference_moves_expression_out_of_roots():
    graph = ScriptGraph()
    wait = graph.create_instance("wait")
    rnd = graph.create_instance("random", {"min": 1, "max": 2})

    graph.set_field(wait.uid, "sec", SocketRef(rnd.uid))

    assert graph.roots == [wait.uid]
    assert wait.values["sec"] == SocketRef(rnd.uid)
    assert graph.parent_of(rnd.uid) == Placement(parent=wait.uid, field_name="sec")


def test_set_field_replacing_reference_re_roots_previous_expression():
    graph = ScriptGraph()
    wait = graph.create_instance("wait")
    first = graph.create_instance("random")
    second = graph.create_instance("abs")
    graph.set_field(wait.uid, "sec", SocketRef(first.uid))

    graph.set_field(wait.uid, "sec", SocketRef(second.uid))

    assert first.uid in graph.roots
    assert second.uid not in graph.roots
    assert graph.parent_of(first.uid) is None


def test_set_field_rejects_wrong_expression_kind():
    graph = ScriptGraph()
    branch = graph.create_instance("if")
    number = graph.create_instance("random")
    before = _snapshot(graph)

    with pytest.raises(InvalidFieldValueError, match="accepts bool_expr blocks"):
        graph.set_field(branch.uid, "cond", SocketRef(number.uid))
    assert _snapshot(graph) == before


def test_set_field_rejects_reference_on_literal_only_field():
    graph = ScriptGraph()
    color = graph.create_instance("set_color")
    value = graph.create_instance("get_var")
    with pytest.raises(InvalidFieldValueError, match="does not accept block references"):
        graph.set_field(color.uid, "color", SocketRef(value.uid))


def test_set_field_rejects_reference_cycles():
    graph = ScriptGraph()
    outer = graph.create_instance("not")
    inner = graph.create_instance("and")
    graph.set_field(outer.uid, "a", SocketRef(inner.uid))
    before = _snapshot(graph)

    with pytest.raises(InvalidFieldValueError, match="would create a cycle"):
        graph.set_field(inner.uid, "a", SocketRef(outer.uid))
    assert _snapshot(graph) == before


def test_detaching_referenced_expression_restores_field_default():
    graph = ScriptGraph()
    wait = graph.create_instance("wait", {"sec": 3})
    rnd = graph.create_instance("random")
    graph.set_field(wait.uid, "sec", SocketRef(rnd.uid))

    graph.detach(rnd.uid)

    assert wait.values["sec"] == 1
    assert rnd.uid in graph.roots


def test_serialize_round_trip_preserves_structure():
    graph = ScriptGraph()
    hat = graph.create_instance("on_keydown", {"key": "w"})
    branch = graph.create_instance("if_else")
    cond = graph.create_instance("compare", {"a": "3", "op": "<", "b": 5})
    move = graph.create_instance("move_by", {"x": 1})
    say = graph.create_instance("print", {"msg": "else"})
    graph.attach_child(hat.uid, "children", 0, branch.uid)
    graph.attach_child(branch.uid, "children", 0, move.uid)
    graph.attach_child(branch.uid, "else_children", 0, say.uid)
    graph.set_field(branch.uid, "cond", SocketRef(cond.uid))

    tree = graph.serialize()
    restored = ScriptGraph.deserialize(copy.deepcopy(tree))

    assert restored == graph
    assert restored.serialize() == tree
    assert tree[0]["children"][0]["values"]["cond"]["ref"]["blockId"] == "compare"
    assert tree[0]["children"][0]["elseChildren"][0]["uid"] == say.uid


def test_deserialize_keeps_unknown_blocks():
    tree = [{"uid": "x1", "blockId": "hover_mode", "values": {"speed": 2}, "children": []}]
    graph = ScriptGraph.deserialize(tree)
    assert graph.get("x1").definition_id == "hover_mode"
    assert graph.serialize() == [
        {"uid": "x1", "blockId": "hover_mode", "values": {"speed": 2}}
    ]


def test_deserialize_rejects_duplicate_uids():
    tree = [
        {"uid": "b1", "blockId": "wait", "values": {}},
        {"uid": "b1", "blockId": "print", "values": {}},
    ]
    with pytest.raises(InvalidStructureError, match="Duplicate block uid 'b1'"):
        ScriptGraph.deserialize(tree)


def test_new_uids_do_not_collide_with_loaded_ones():
    graph = ScriptGraph.deserialize([{"uid": "b1", "blockId": "wait", "values": {}}])
    created = graph.create_instance("wait")
    assert created.uid == "b2"


def test_store_serializes_every_object():
    store = ScriptGraphStore()
    store.graph("player").create_instance("on_start")
    store.graph("coin").create_instance("on_click")

    payload = store.serialize_all()
    restored = ScriptGraphStore.deserialize_all(payload)

    assert restored.object_ids() == ["player", "coin"]
    assert restored.graph("player") == store.graph("player")
    assert "ghost" not in restored


def test_hat_children_survive_serialize_round_trip():
    graph = ScriptGraph()
    hat = graph.create_instance("on_start")
    move = graph.create_instance("move_by", {"x": 2})
    graph.attach_child(hat.uid, "children", 0, move.uid)

    tree = graph.serialize()
    restored = ScriptGraph.deserialize(copy.deepcopy(tree))

    assert tree[0]["children"][0]["uid"] == move.uid
    assert restored == graph
    assert restored.get(hat.uid).children == [move.uid]
    assert restored.parent_of(move.uid) == Placement(parent=hat.uid, branch="children")
