from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .objects import Vec3


@dataclass
class SceneNode:
    object_id: str
    shape: str
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)


@dataclass
class Effect:
    fx: str
    count: int
    position: Vec3
    remaining: float = 1.0


class SceneGraph:
    """Render-facing scene state an external host may draw."""

    def __init__(self):
        self.nodes: Dict[str, SceneNode] = {}
        self.fog: Optional[tuple] = None
        self.sky_color = "#87ceeb"
        self.effects: List[Effect] = []

    def add_node(self, object_id: str, shape: str) -> SceneNode:
        node = SceneNode(object_id=object_id, shape=shape)
        self.nodes[object_id] = node
        return node

    def remove_node(self, object_id: str) -> None:
        node = self.nodes.pop(object_id, None)
        if node is None:
            return
        if node.parent in self.nodes:
            self.nodes[node.parent].children.remove(object_id)
        for child_id in node.children:
            if child_id in self.nodes:
                self.nodes[child_id].parent = None

    def set_shape(self, object_id: str, shape: str) -> None:
        if object_id in self.nodes:
            self.nodes[object_id].shape = shape

    def reparent(self, object_id: str, parent_id: Optional[str]) -> bool:
        """Move a node under ``parent_id`` (or to the root); refuse cycles."""
        node = self.nodes.get(object_id)
        if node is None:
            return False
        if parent_id is not None:
            if parent_id not in self.nodes:
                return False
            cursor: Optional[str] = parent_id
            while cursor is not None:
                if cursor == object_id:
                    return False
                cursor = self.nodes[cursor].parent
        if node.parent in self.nodes:
            self.nodes[node.parent].children.remove(object_id)
        node.parent = parent_id
        if parent_id is not None:
            self.nodes[parent_id].children.append(object_id)
        return True

    def add_effect(self, fx: str, count: int, position: Vec3) -> Effect:
        effect = Effect(fx=fx, count=count, position=position.copy())
        self.effects.append(effect)
        return effect

    def advance(self, dt: float) -> None:
        for effect in self.effects:
            effect.remaining -= dt
        self.effects = [effect for effect in self.effects if effect.remaining > 0]
