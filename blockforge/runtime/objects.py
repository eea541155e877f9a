import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set

SHAPES = ("cube", "sphere", "cylinder", "cone", "capsule", "plane", "torus")


@dataclass
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.z)

    def set(self, x: float, y: float, z: float) -> None:
        self.x, self.y, self.z = x, y, z

    def add(self, x: float, y: float, z: float) -> None:
        self.x += x
        self.y += y
        self.z += z

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def sanitize(self) -> None:
        """Reset non-finite components to zero."""
        if not math.isfinite(self.x):
            self.x = 0.0
        if not math.isfinite(self.y):
            self.y = 0.0
        if not math.isfinite(self.z):
            self.z = 0.0

    def as_tuple(self) -> tuple:
        return (self.x, self.y, self.z)


@dataclass
class GameObjectState:
    """Mutable state of one scene object, as seen by scripts and the physics step."""

    id: str
    name: str
    type: str = "cube"
    position: Vec3 = field(default_factory=Vec3)
    rotation: Vec3 = field(default_factory=Vec3)
    scale: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    size: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    color: str = "#4488ff"
    opacity: float = 1.0
    visible: bool = True
    cast_shadow: bool = True
    material: str = "standard"
    texture: str = ""
    model: str = ""
    emissive_color: str = "#000000"
    emissive_intensity: float = 0.0
    animation: Optional[str] = None
    animation_loop: bool = False
    physics: bool = False
    velocity: Vec3 = field(default_factory=Vec3)
    mass: float = 1.0
    friction: float = 0.5
    freeze_rotation: bool = False
    speed: float = 5.0
    health: float = 100.0
    is_trigger: bool = False
    tags: Set[str] = field(default_factory=set)
    parent: Optional[str] = None
    grounded: bool = False
    alive: bool = True
    spawn_point: Vec3 = field(default_factory=Vec3)

    @property
    def shape(self) -> str:
        return self.type

    @classmethod
    def from_spec(cls, spec: Mapping[str, Any]) -> "GameObjectState":
        """Build an object from its project description."""

        def num(key: str, default: float) -> float:
            value = spec.get(key, default)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return default
            return float(value) if math.isfinite(value) else default

        object_id = str(spec["id"])
        obj = cls(
            id=object_id,
            name=str(spec.get("name") or object_id),
            type=str(spec.get("type") or "cube"),
            position=Vec3(num("x", 0.0), num("y", 0.0), num("z", 0.0)),
            rotation=Vec3(num("rotX", 0.0), num("rotY", 0.0), num("rotZ", 0.0)),
            scale=Vec3(num("scaleX", 1.0), num("scaleY", 1.0), num("scaleZ", 1.0)),
            color=str(spec.get("color") or "#4488ff"),
            visible=bool(spec.get("visible", True)),
            physics=bool(spec.get("physics", False)),
            mass=num("mass", 1.0),
            friction=num("friction", 0.5),
            speed=num("speed", 5.0),
            is_trigger=bool(spec.get("isTrigger", False)),
            tags=set(spec.get("tags") or ()),
            parent=spec.get("parent"),
        )
        obj.spawn_point = obj.position.copy()
        return obj

    def half_extents(self) -> Vec3:
        return Vec3(
            abs(self.scale.x * self.size.x) / 2,
            abs(self.scale.y * self.size.y) / 2,
            abs(self.scale.z * self.size.z) / 2,
        )


class ObjectRegistry:
    """Live objects by id, in creation order."""

    def __init__(self):
        self._objects: Dict[str, GameObjectState] = {}

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._objects

    def __iter__(self) -> Iterator[GameObjectState]:
        return iter(list(self._objects.values()))

    def __len__(self) -> int:
        return len(self._objects)

    def add(self, obj: GameObjectState) -> GameObjectState:
        if obj.id in self._objects:
            raise ValueError(f"Object id '{obj.id}' already exists.")
        self._objects[obj.id] = obj
        return obj

    def get(self, object_id: str) -> Optional[GameObjectState]:
        return self._objects.get(object_id)

    def find(self, key: str) -> Optional[GameObjectState]:
        """Find an object by id, then by name."""
        obj = self._objects.get(key)
        if obj is not None:
            return obj
        for candidate in self._objects.values():
            if candidate.name == key:
                return candidate
        return None

    def by_tag(self, tag: str) -> List[GameObjectState]:
        return [obj for obj in self._objects.values() if tag in obj.tags]

    def remove(self, object_id: str) -> Optional[GameObjectState]:
        return self._objects.pop(object_id, None)

    def unique_id(self, base: str) -> str:
        index = 1
        while f"{base}_{index}" in self._objects:
            index += 1
        return f"{base}_{index}"
