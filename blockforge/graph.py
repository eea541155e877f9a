"""Per-object script graphs and their serialized form.

A graph owns every block instance of one object. Statement blocks hang off
their parent's ``children`` / ``else_children`` branch, expression blocks hang
off a field of the block that references them, and everything else sits in the
ordered root list. Each instance has at most one placement, so the structure is
always a forest.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from blockforge.block_registry import BlockDefinition, BlockRegistry, default_registry
from blockforge.errors import InvalidFieldValueError, InvalidStructureError
from blockforge.typesys import (
    SOCKET_TARGETS,
    FieldValue,
    SocketRef,
    validate_literal,
)

BRANCHES = ("children", "else_children")
_SERIALIZED_BRANCHES = {"children": "children", "else_children": "elseChildren"}


@dataclass
class BlockInstance:
    uid: str
    definition_id: str
    values: Dict[str, FieldValue] = field(default_factory=dict)
    children: List[str] = field(default_factory=list)
    else_children: List[str] = field(default_factory=list)

    def branch(self, name: str) -> List[str]:
        if name == "children":
            return self.children
        if name == "else_children":
            return self.else_children
        raise InvalidStructureError(f"Unknown branch '{name}'.")

    def socket_refs(self) -> List[Tuple[str, str]]:
        """Return ``(field_name, uid)`` for every field holding a reference."""
        return [
            (name, value.uid)
            for name, value in self.values.items()
            if isinstance(value, SocketRef)
        ]


@dataclass(frozen=True)
class Placement:
    parent: str
    branch: Optional[str] = None
    field_name: Optional[str] = None


class ScriptGraph:
    """Block tree of one object."""

    def __init__(self, registry: Optional[BlockRegistry] = None, uid_prefix: str = "b"):
        self.registry = registry or default_registry()
        self.uid_prefix = uid_prefix
        self.roots: List[str] = []
        self._instances: Dict[str, BlockInstance] = {}
        self._placements: Dict[str, Placement] = {}
        self._uid_counter = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScriptGraph):
            return NotImplemented
        return self.roots == other.roots and self._instances == other._instances

    def __contains__(self, uid: str) -> bool:
        return uid in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def get(self, uid: str) -> BlockInstance:
        try:
            return self._instances[uid]
        except KeyError as exc:
            raise InvalidStructureError(f"No block instance with uid '{uid}'.") from exc

    def instances(self) -> Iterator[BlockInstance]:
        return iter(self._instances.values())

    def definition_of(self, uid: str) -> BlockDefinition:
        return self.registry.lookup(self.get(uid).definition_id)

    def parent_of(self, uid: str) -> Optional[Placement]:
        self.get(uid)
        return self._placements.get(uid)

    def ancestors(self, uid: str) -> List[str]:
        chain = []
        placement = self._placements.get(uid)
        while placement is not None:
            chain.append(placement.parent)
            placement = self._placements.get(placement.parent)
        return chain

    # Edits

    def create_instance(
        self,
        definition_id: str,
        initial_values: Optional[Dict[str, Any]] = None,
        *,
        uid: Optional[str] = None,
    ) -> BlockInstance:
        definition = self.registry.lookup(definition_id)
        values = definition.default_values()
        for name, value in (initial_values or {}).items():
            if isinstance(value, SocketRef):
                raise InvalidFieldValueError(
                    f"Field '{name}' of a new '{definition_id}' block cannot hold a "
                    "reference; use set_field once both blocks exist."
                )
            self._check_literal(definition, name, value)
            values[name] = value

        if uid is None:
            uid = self._next_uid()
        elif uid in self._instances:
            raise InvalidStructureError(f"Duplicate block uid '{uid}'.")

        instance = BlockInstance(uid=uid, definition_id=definition_id, values=values)
        self._instances[uid] = instance
        self.roots.append(uid)
        return instance

    def attach_child(self, parent_uid: str, branch: str, index: int, child_uid: str) -> None:
        parent = self.get(parent_uid)
        child = self.get(child_uid)
        parent_def = self.registry.lookup(parent.definition_id)
        child_def = self.registry.lookup(child.definition_id)

        if branch not in parent_def.kind.branches:
            raise InvalidStructureError(
                f"Block '{parent_def.id}' has no '{branch}' branch."
            )
        if not child_def.kind.is_statement:
            raise InvalidStructureError(
                f"Block '{child_def.id}' is a {child_def.kind.value} block and "
                "cannot be placed in a branch."
            )
        if child_uid == parent_uid or child_uid in self.ancestors(parent_uid):
            raise InvalidStructureError(
                f"Attaching '{child_uid}' under '{parent_uid}' would create a cycle."
            )

        self._unplace(child_uid)
        target = parent.branch(branch)
        index = max(0, min(index, len(target)))
        target.insert(index, child_uid)
        self._placements[child_uid] = Placement(parent=parent_uid, branch=branch)

    def attach_root(self, uid: str, index: int) -> None:
        self.get(uid)
        self._unplace(uid)
        index = max(0, min(index, len(self.roots)))
        self.roots.insert(index, uid)

    def detach(self, uid: str) -> None:
        self.get(uid)
        self._unplace(uid)
        self.roots.append(uid)

    def delete(self, uid: str) -> None:
        instance = self.get(uid)
        self._unplace(uid)
        for child_uid in instance.children + instance.else_children:
            self._placements.pop(child_uid, None)
            self.roots.append(child_uid)
        for _, ref_uid in instance.socket_refs():
            self._placements.pop(ref_uid, None)
            self.roots.append(ref_uid)
        del self._instances[uid]

    def set_field(self, uid: str, name: str, value: FieldValue) -> None:
        instance = self.get(uid)
        definition = self.registry.lookup(instance.definition_id)

        if isinstance(value, SocketRef):
            self._check_socket(definition, uid, name, value)
        else:
            self._check_literal(definition, name, value)

        previous = instance.values.get(name)
        if isinstance(previous, SocketRef) and previous != value:
            self._placements.pop(previous.uid, None)
            self.roots.append(previous.uid)

        if isinstance(value, SocketRef) and previous != value:
            self._unplace(value.uid)
            self._placements[value.uid] = Placement(parent=uid, field_name=name)
        instance.values[name] = value

    # Validation

    def _check_literal(self, definition: BlockDefinition, name: str, value) -> None:
        if not definition.has_field(name):
            raise InvalidFieldValueError(
                f"Block '{definition.id}' has no field '{name}'."
            )
        spec = definition.field(name)
        problem = validate_literal(spec.type, value, options=spec.options)
        if problem is not None:
            raise InvalidFieldValueError(
                f"Field '{name}' of '{definition.id}' ({spec.type.value}): "
                f"{problem}, got {value!r}."
            )

    def _check_socket(
        self,
        definition: BlockDefinition,
        uid: str,
        name: str,
        ref: SocketRef,
    ) -> None:
        if not definition.has_field(name):
            raise InvalidFieldValueError(
                f"Block '{definition.id}' has no field '{name}'."
            )
        spec = definition.field(name)
        accepted = SOCKET_TARGETS.get(spec.type)
        if accepted is None:
            raise InvalidFieldValueError(
                f"Field '{name}' of '{definition.id}' ({spec.type.value}) "
                "does not accept block references."
            )
        if ref.uid not in self._instances:
            raise InvalidFieldValueError(
                f"Referenced block '{ref.uid}' is not part of this graph."
            )
        target_def = self.registry.lookup(self._instances[ref.uid].definition_id)
        if target_def.kind not in accepted:
            names = ", ".join(kind.value for kind in accepted)
            raise InvalidFieldValueError(
                f"Field '{name}' of '{definition.id}' accepts {names} blocks, "
                f"not '{target_def.id}' ({target_def.kind.value})."
            )
        if ref.uid == uid or ref.uid in self.ancestors(uid):
            raise InvalidFieldValueError(
                f"Referencing '{ref.uid}' from '{uid}' would create a cycle."
            )

    # Internals

    def _unplace(self, uid: str) -> None:
        placement = self._placements.pop(uid, None)
        if placement is None:
            if uid in self.roots:
                self.roots.remove(uid)
            return
        parent = self._instances[placement.parent]
        if placement.branch is not None:
            parent.branch(placement.branch).remove(uid)
        else:
            parent.values[placement.field_name] = self._field_default(
                parent, placement.field_name
            )

    def _field_default(self, instance: BlockInstance, name: str):
        if self.registry.has_block(instance.definition_id):
            definition = self.registry.lookup(instance.definition_id)
            if definition.has_field(name):
                return definition.field(name).default
        return None

    def _next_uid(self) -> str:
        while True:
            self._uid_counter += 1
            candidate = f"{self.uid_prefix}{self._uid_counter}"
            if candidate not in self._instances:
                return candidate

    # Serialization

    def serialize(self) -> List[Dict[str, Any]]:
        return [self._serialize_node(uid) for uid in self.roots]

    def _serialize_node(self, uid: str) -> Dict[str, Any]:
        instance = self._instances[uid]
        values: Dict[str, Any] = {}
        for name, value in instance.values.items():
            if isinstance(value, SocketRef):
                values[name] = {"ref": self._serialize_node(value.uid)}
            else:
                values[name] = value
        node: Dict[str, Any] = {
            "uid": uid,
            "blockId": instance.definition_id,
            "values": values,
        }
        for branch in self._branches_of(instance):
            node[_SERIALIZED_BRANCHES[branch]] = [
                self._serialize_node(child) for child in instance.branch(branch)
            ]
        return node

    def _branches_of(self, instance: BlockInstance) -> Tuple[str, ...]:
        if self.registry.has_block(instance.definition_id):
            return self.registry.lookup(instance.definition_id).kind.branches
        # Unknown blocks keep whatever branches they arrived with.
        return tuple(
            branch for branch in BRANCHES if instance.branch(branch)
        )

    @classmethod
    def deserialize(
        cls,
        tree: List[Dict[str, Any]],
        registry: Optional[BlockRegistry] = None,
    ) -> "ScriptGraph":
        """Rebuild a graph from its serialized root list.

        Block ids missing from the registry are kept as-is so that a project
        saved with a newer catalog still loads; compiling such a graph fails.
        """
        graph = cls(registry=registry)
        if not isinstance(tree, list):
            raise InvalidStructureError("Serialized script graph must be a list of roots.")
        for node in tree:
            graph.roots.append(graph._load_node(node, placement=None))
        return graph

    def _load_node(self, node: Dict[str, Any], placement: Optional[Placement]) -> str:
        if not isinstance(node, dict):
            raise InvalidStructureError("Serialized block must be an object.")
        uid = node.get("uid")
        block_id = node.get("blockId")
        if not isinstance(uid, str) or not isinstance(block_id, str):
            raise InvalidStructureError("Serialized block needs string 'uid' and 'blockId'.")
        if uid in self._instances:
            raise InvalidStructureError(f"Duplicate block uid '{uid}'.")

        definition: Optional[BlockDefinition] = None
        if self.registry.has_block(block_id):
            definition = self.registry.lookup(block_id)

        instance = BlockInstance(uid=uid, definition_id=block_id)
        self._instances[uid] = instance
        if placement is not None:
            self._placements[uid] = placement

        raw_values = node.get("values") or {}
        if not isinstance(raw_values, dict):
            raise InvalidStructureError(f"Block '{uid}' values must be an object.")
        values: Dict[str, FieldValue] = {}
        if definition is not None:
            values.update(definition.default_values())
        for name, raw in raw_values.items():
            if isinstance(raw, dict) and "ref" in raw:
                ref_uid = self._load_node(raw["ref"], Placement(parent=uid, field_name=name))
                values[name] = SocketRef(ref_uid)
            else:
                values[name] = raw
        instance.values = values

        for branch, key in _SERIALIZED_BRANCHES.items():
            raw_children = node.get(key)
            if raw_children is None:
                continue
            if definition is not None and branch not in definition.kind.branches:
                raise InvalidStructureError(
                    f"Block '{uid}' ({block_id}) cannot own a '{branch}' branch."
                )
            if not isinstance(raw_children, list):
                raise InvalidStructureError(f"Block '{uid}' {key} must be a list.")
            target = instance.branch(branch)
            for child in raw_children:
                target.append(self._load_node(child, Placement(parent=uid, branch=branch)))
        return uid


class ScriptGraphStore:
    """Maps object ids to their script graphs."""

    def __init__(self, registry: Optional[BlockRegistry] = None):
        self.registry = registry or default_registry()
        self._graphs: Dict[str, ScriptGraph] = {}

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._graphs

    def object_ids(self) -> List[str]:
        return list(self._graphs)

    def graph(self, object_id: str) -> ScriptGraph:
        if object_id not in self._graphs:
            self._graphs[object_id] = ScriptGraph(self.registry)
        return self._graphs[object_id]

    def remove(self, object_id: str) -> None:
        self._graphs.pop(object_id, None)

    def serialize(self, object_id: str) -> List[Dict[str, Any]]:
        return self.graph(object_id).serialize()

    def deserialize(self, object_id: str, tree: List[Dict[str, Any]]) -> ScriptGraph:
        graph = ScriptGraph.deserialize(tree, registry=self.registry)
        self._graphs[object_id] = graph
        return graph

    def serialize_all(self) -> Dict[str, List[Dict[str, Any]]]:
        return {object_id: graph.serialize() for object_id, graph in self._graphs.items()}

    @classmethod
    def deserialize_all(
        cls,
        payload: Dict[str, List[Dict[str, Any]]],
        registry: Optional[BlockRegistry] = None,
    ) -> "ScriptGraphStore":
        store = cls(registry)
        for object_id, tree in payload.items():
            store.deserialize(object_id, tree)
        return store


__all__ = [
    "BlockInstance",
    "Placement",
    "ScriptGraph",
    "ScriptGraphStore",
]
