import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from blockforge.block_registry import BlockDefinition, BlockRegistry, default_registry
from blockforge.errors import (
    CompileError,
    block_context,
    format_block_diagnostic,
    object_context,
)
from blockforge.graph import BlockInstance, ScriptGraph
from blockforge.ir import (
    CallExpr,
    Const,
    Expr,
    HandlerIR,
    HandlerKind,
    ModuleIR,
    Pass,
    Stmt,
)
from blockforge.py_generator import PyGenerator
from blockforge.typesys import BlockKind, FieldType, SocketRef

from .constants import (
    ADOPTED_HANDLER_NAME,
    EVENT_HATS,
    HAT_KINDS,
    LOOP_VAR_PREFIX,
    MODULE_FUNCTION_PREFIX,
    VALUE_FIELDS,
)
from .helpers import _number_const, _sanitize_identifier, _value_const
from .lowering import LOWERINGS


class ObjectLowering:
    """Lowering state for one object's graph."""

    def __init__(self, object_id: str, graph: ScriptGraph, registry: BlockRegistry):
        self.object_id = object_id
        self.graph = graph
        self.registry = registry
        self.loop_depth = 0
        self._loop_counter = 0
        self._handler_counter = 0

    def lower(self) -> ModuleIR:
        hats: List[BlockInstance] = []
        orphans: List[BlockInstance] = []
        for uid in self.graph.roots:
            instance = self.graph.get(uid)
            definition = self._definition(instance)
            if definition.kind == BlockKind.HAT:
                hats.append(instance)
            elif definition.kind.is_expression:
                with block_context(instance.uid, instance.definition_id):
                    self.warn(f"Detached '{definition.id}' block is ignored.")
            else:
                orphans.append(instance)

        handlers = [self._lower_hat(hat) for hat in hats]
        if orphans:
            body: List[Stmt] = []
            for instance in orphans:
                body.extend(self.statement(instance))
            handlers.append(
                HandlerIR(
                    name=ADOPTED_HANDLER_NAME,
                    kind=HandlerKind.EVENT,
                    key=Const("start"),
                    body=body,
                )
            )

        return ModuleIR(
            object_id=self.object_id,
            function_name=MODULE_FUNCTION_PREFIX + _sanitize_identifier(self.object_id),
            handlers=handlers,
        )

    def _lower_hat(self, hat: BlockInstance) -> HandlerIR:
        with block_context(hat.uid, hat.definition_id):
            kind = HAT_KINDS.get(hat.definition_id)
            if kind is None:
                raise CompileError(f"Hat block '{hat.definition_id}' has no trigger.")

            if kind == HandlerKind.EVENT:
                template = EVENT_HATS[hat.definition_id]
                params = {
                    spec.name: self.hat_literal(hat, spec.name)
                    for spec in self._definition(hat).fields
                }
                key: Expr = Const(template.format(object=self.object_id, **params))
            elif kind == HandlerKind.TIMER:
                key = self.number(hat, "sec")
            else:
                key = Const(self.hat_literal(hat, "name"))

            self._handler_counter += 1
            name = f"{hat.definition_id}_{self._handler_counter}"
            body = self.branch(hat, "children")
        return HandlerIR(name=name, kind=kind, key=key, body=body)

    # Blocks

    def statement(self, instance: BlockInstance) -> List[Stmt]:
        with block_context(instance.uid, instance.definition_id):
            definition = self._definition(instance)
            if not definition.kind.is_statement:
                raise CompileError(
                    f"Block '{definition.id}' ({definition.kind.value}) cannot be used as a statement."
                )
            return self._lowering(definition)(self, instance)

    def expression(self, uid: str) -> Expr:
        instance = self.graph.get(uid)
        with block_context(instance.uid, instance.definition_id):
            definition = self._definition(instance)
            if not definition.kind.is_expression:
                raise CompileError(
                    f"Block '{definition.id}' ({definition.kind.value}) cannot be used as a value."
                )
            return self._lowering(definition)(self, instance)

    def branch(self, instance: BlockInstance, name: str, *, loop: bool = False) -> List[Stmt]:
        if loop:
            self.loop_depth += 1
        try:
            body: List[Stmt] = []
            for child_uid in instance.branch(name):
                body.extend(self.statement(self.graph.get(child_uid)))
        finally:
            if loop:
                self.loop_depth -= 1
        return body or [Pass()]

    def _definition(self, instance: BlockInstance) -> BlockDefinition:
        if not self.registry.has_block(instance.definition_id):
            with block_context(instance.uid, instance.definition_id):
                raise CompileError(f"Unknown block id '{instance.definition_id}'.")
        return self.registry.lookup(instance.definition_id)

    def _lowering(self, definition: BlockDefinition):
        lowering = LOWERINGS.get(definition.id)
        if lowering is None:
            raise CompileError(f"Block '{definition.id}' cannot be compiled.")
        return lowering

    # Fields

    def field(self, instance: BlockInstance, name: str) -> Expr:
        spec = self._definition(instance).field(name)
        if (instance.definition_id, name) in VALUE_FIELDS:
            return self.value(instance, name)
        if spec.type == FieldType.NUMBER:
            return self.number(instance, name)
        if spec.type in (FieldType.TEXT, FieldType.LONG_TEXT):
            return self.text(instance, name)
        if spec.type == FieldType.BOOL_SOCKET:
            return self.condition(instance, name)
        return self.literal(instance, name)

    def number(self, instance: BlockInstance, name: str) -> Expr:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            return CallExpr("to_number", [self.expression(raw.uid)])
        numeric = _number_const(raw)
        if numeric is not None:
            return numeric
        return CallExpr("to_number", [Const("" if raw is None else str(raw))])

    def text(self, instance: BlockInstance, name: str) -> Expr:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            return self.expression(raw.uid)
        return Const("" if raw is None else str(raw))

    def value(self, instance: BlockInstance, name: str) -> Expr:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            return self.expression(raw.uid)
        return _value_const(raw)

    def literal(self, instance: BlockInstance, name: str) -> Expr:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            raise CompileError(f"Field '{name}' cannot hold a block reference.")
        return Const(raw)

    def condition(self, instance: BlockInstance, name: str) -> Expr:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            return self.expression(raw.uid)
        if isinstance(raw, bool):
            return Const(raw)
        return Const(self._definition(instance).field(name).socket_default)

    def hat_literal(self, instance: BlockInstance, name: str) -> str:
        raw = self._raw(instance, name)
        if isinstance(raw, SocketRef):
            raise CompileError(
                f"Field '{name}' of a '{instance.definition_id}' hat must be a literal."
            )
        return "" if raw is None else str(raw)

    def _raw(self, instance: BlockInstance, name: str):
        if name in instance.values:
            return instance.values[name]
        return self._definition(instance).field(name).default

    # Utilities

    def next_loop_var(self) -> str:
        self._loop_counter += 1
        return f"{LOOP_VAR_PREFIX}{self._loop_counter}"

    def warn(self, message: str) -> None:
        warnings.warn(format_block_diagnostic(message), stacklevel=3)


@dataclass
class CompileResult:
    modules: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, CompileError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class ScriptCompiler:
    def __init__(self, registry: Optional[BlockRegistry] = None):
        """Create a compiler turning object script graphs into Python modules."""
        self.registry = registry or default_registry()
        self.generator = PyGenerator()

    def lower_object(self, object_id: str, graph: ScriptGraph) -> ModuleIR:
        with object_context(object_id):
            return ObjectLowering(object_id, graph, self.registry).lower()

    def compile_object(self, object_id: str, graph: ScriptGraph) -> str:
        """Compile one object's graph into the source of one generated module."""
        module = self.lower_object(object_id, graph)
        return self.generator.generate(module)

    def compile_all(self, graphs: Mapping[str, ScriptGraph]) -> CompileResult:
        """Compile every graph; a failing object does not stop the others."""
        result = CompileResult()
        for object_id, graph in graphs.items():
            try:
                result.modules[object_id] = self.compile_object(object_id, graph)
            except CompileError as exc:
                result.errors[object_id] = exc
        return result
