import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from blockforge.block_registry import BlockRegistry
from blockforge.errors import ProjectImportError
from blockforge.graph import ScriptGraphStore

FORMAT_VERSION = "1"


@dataclass
class ObjectSpec:
    id: str
    name: str
    type: str = "cube"
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    rot_x: float = 0.0
    rot_y: float = 0.0
    rot_z: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    scale_z: float = 1.0
    color: str = "#4488ff"
    visible: bool = True
    physics: bool = False
    mass: float = 1.0
    is_trigger: bool = False
    tags: List[str] = field(default_factory=list)
    parent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "rotX": self.rot_x,
            "rotY": self.rot_y,
            "rotZ": self.rot_z,
            "scaleX": self.scale_x,
            "scaleY": self.scale_y,
            "scaleZ": self.scale_z,
            "color": self.color,
            "visible": self.visible,
            "physics": self.physics,
            "mass": self.mass,
            "isTrigger": self.is_trigger,
            "tags": list(self.tags),
            "parent": self.parent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectSpec":
        if "id" not in data:
            raise ProjectImportError("Object entry is missing its 'id'.")
        object_id = str(data["id"])
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ProjectImportError(f"Tags of object '{object_id}' must be a list.")
        return cls(
            id=object_id,
            name=str(data.get("name") or object_id),
            type=str(data.get("type") or "cube"),
            x=data.get("x", 0.0),
            y=data.get("y", 0.0),
            z=data.get("z", 0.0),
            rot_x=data.get("rotX", 0.0),
            rot_y=data.get("rotY", 0.0),
            rot_z=data.get("rotZ", 0.0),
            scale_x=data.get("scaleX", 1.0),
            scale_y=data.get("scaleY", 1.0),
            scale_z=data.get("scaleZ", 1.0),
            color=str(data.get("color") or "#4488ff"),
            visible=bool(data.get("visible", True)),
            physics=bool(data.get("physics", False)),
            mass=data.get("mass", 1.0),
            is_trigger=bool(data.get("isTrigger", False)),
            tags=[str(tag) for tag in tags],
            parent=data.get("parent"),
        )


@dataclass
class AssetSpec:
    name: str
    type: str
    data: bytes = b""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetSpec":
        if "name" not in data:
            raise ProjectImportError("Asset entry is missing its 'name'.")
        try:
            payload = base64.b64decode(data.get("data") or "", validate=True)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise ProjectImportError(f"Asset '{data.get('name')}' has corrupted data.") from exc
        return cls(name=str(data["name"]), type=str(data.get("type") or "other"), data=payload)


@dataclass
class ProjectMeta:
    id: str = "game"
    name: str = "My Game"
    author: str = "Unknown"
    description: str = ""
    version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "author": self.author,
            "description": self.description,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectMeta":
        defaults = cls()
        return cls(
            id=str(data.get("id") or defaults.id),
            name=str(data.get("name") or defaults.name),
            author=str(data.get("author") or defaults.author),
            description=str(data.get("description") or ""),
            version=str(data.get("version") or defaults.version),
        )


@dataclass
class ProjectSpec:
    """Everything the editor saves: objects, their scripts, custom files and assets."""

    meta: ProjectMeta = field(default_factory=ProjectMeta)
    objects: List[ObjectSpec] = field(default_factory=list)
    scripts: ScriptGraphStore = field(default_factory=ScriptGraphStore)
    custom_files: Dict[str, str] = field(default_factory=dict)
    assets: List[AssetSpec] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    def add_object(self, spec: ObjectSpec) -> ObjectSpec:
        if any(existing.id == spec.id for existing in self.objects):
            raise ValueError(f"Object id '{spec.id}' already exists.")
        self.objects.append(spec)
        self.scripts.graph(spec.id)
        return spec

    def object(self, object_id: str) -> ObjectSpec:
        for spec in self.objects:
            if spec.id == object_id:
                return spec
        raise KeyError(object_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "manifest": self.meta.to_dict(),
            "objects": [spec.to_dict() for spec in self.objects],
            "blockScripts": self.scripts.serialize_all(),
            "customFiles": dict(self.custom_files),
            "assets": [asset.to_dict() for asset in self.assets],
            "settings": dict(self.settings),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        registry: Optional[BlockRegistry] = None,
    ) -> "ProjectSpec":
        if not isinstance(data, dict):
            raise ProjectImportError("Project data must be a JSON object.")
        scripts = _section(data, "blockScripts", dict, "'blockScripts' must map object ids to block lists.")
        custom_files = _section(data, "customFiles", dict, "'customFiles' must map file names to source text.")
        return cls(
            meta=ProjectMeta.from_dict(_section(data, "manifest", dict, "'manifest' must be a JSON object.")),
            objects=[ObjectSpec.from_dict(item) for item in _entries(data, "objects")],
            scripts=ScriptGraphStore.deserialize_all(scripts, registry=registry),
            custom_files={str(name): str(content) for name, content in custom_files.items()},
            assets=[AssetSpec.from_dict(item) for item in _entries(data, "assets")],
            settings=dict(_section(data, "settings", dict, "'settings' must be a JSON object.")),
        )


def _section(data: Dict[str, Any], key: str, expected: type, message: str):
    value = data.get(key)
    if value is None:
        return expected()
    if not isinstance(value, expected):
        raise ProjectImportError(message)
    return value


def _entries(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = _section(data, key, list, f"'{key}' must be a list.")
    for item in items:
        if not isinstance(item, dict):
            raise ProjectImportError(f"Every entry of '{key}' must be a JSON object.")
    return items
