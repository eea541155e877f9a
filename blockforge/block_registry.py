from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from blockforge.errors import UnknownBlockError
from blockforge.typesys import BlockKind, FieldType, Literal


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: FieldType
    default: Literal = None
    options: Tuple[str, ...] = ()
    socket_default: bool = True


@dataclass(frozen=True)
class BlockDefinition:
    id: str
    category: str
    label: str
    kind: BlockKind
    fields: Tuple[FieldSpec, ...] = ()

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"Block '{self.id}' has no field '{name}'.")

    def has_field(self, name: str) -> bool:
        return any(spec.name == name for spec in self.fields)

    def default_values(self) -> Dict[str, Literal]:
        return {spec.name: spec.default for spec in self.fields}


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str
    blocks: Tuple[BlockDefinition, ...] = field(default_factory=tuple)


class BlockRegistry:
    """
    Holds block definitions for graph validation and lowering.
    """

    def __init__(self, categories: Optional[List[Category]] = None):
        self._categories: List[Category] = []
        self._by_id: Dict[str, BlockDefinition] = {}
        for category in categories or []:
            self.register_category(category)

    def register_category(self, category: Category):
        for definition in category.blocks:
            if definition.id in self._by_id:
                raise ValueError(f"Block '{definition.id}' already declared.")
            if definition.category != category.id:
                raise ValueError(
                    f"Block '{definition.id}' declares category '{definition.category}' "
                    f"but is listed under '{category.id}'."
                )
        for definition in category.blocks:
            self._by_id[definition.id] = definition
        self._categories.append(category)

    def lookup(self, block_id: str) -> BlockDefinition:
        try:
            return self._by_id[block_id]
        except KeyError as exc:
            raise UnknownBlockError(block_id) from exc

    def has_block(self, block_id: str) -> bool:
        return block_id in self._by_id

    def list_by_category(self) -> List[Category]:
        return list(self._categories)

    def block_ids(self) -> List[str]:
        return list(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)


@lru_cache(maxsize=1)
def default_registry() -> BlockRegistry:
    """Return the process-wide registry built from the built-in catalog."""
    from blockforge.catalog import build_categories

    return BlockRegistry(build_categories())
