"""Per-block lowering table.

Every statement or expression block id maps to a function taking the object
lowering context and the block instance. Statement lowerings return a list of
IR statements, expression lowerings return one IR expression.
"""

from typing import Callable, Dict, List, Tuple

from blockforge.ir import (
    Binary,
    Break,
    CallExpr,
    CallStmt,
    Const,
    For,
    If,
    Pass,
    Range,
    Return,
    Stmt,
    Unary,
    Var,
    While,
    Yield,
    YieldFrom,
    RawCode,
)

from .constants import SELF_VAR
from .helpers import _prepare_raw_code

LOWERINGS: Dict[str, Callable] = {}

SELF = Var(SELF_VAR)


def lowers(*block_ids: str):
    def decorate(fn):
        for block_id in block_ids:
            if block_id in LOWERINGS:
                raise ValueError(f"Block '{block_id}' already has a lowering.")
            LOWERINGS[block_id] = fn
        return fn

    return decorate


# Blocks that are a single runtime call: block id -> (runtime method, pass self, fields).
_ACTIONS: Dict[str, Tuple[str, bool, Tuple[str, ...]]] = {
    # Motion
    "move_forward": ("move_forward", True, ("dist",)),
    "set_pos": ("set_pos", True, ("x", "y", "z")),
    "move_by": ("move_by", True, ("x", "y", "z")),
    "set_rot": ("set_rot", True, ("x", "y", "z")),
    "rotate_by": ("rotate_by", True, ("x", "y", "z")),
    "look_at": ("look_at", True, ("target",)),
    "set_speed": ("set_speed", True, ("spd",)),
    "teleport": ("teleport", True, ()),
    # Physics
    "add_force": ("add_force", True, ("x", "y", "z")),
    "set_velocity": ("set_velocity", True, ("x", "y", "z")),
    "jump": ("jump", True, ("force",)),
    "set_gravity": ("set_gravity", False, ("g",)),
    "set_physics": ("set_physics", True, ("enabled",)),
    "set_mass": ("set_mass", True, ("mass",)),
    "set_friction": ("set_friction", True, ("f",)),
    "freeze_rot": ("freeze_rotation", True, ("freeze",)),
    # Appearance
    "set_color": ("set_color", True, ("color",)),
    "set_texture": ("set_texture", True, ("tex",)),
    "set_material": ("set_material", True, ("mat",)),
    "set_emissive": ("set_emissive", True, ("color", "intensity")),
    "set_opacity": ("set_opacity", True, ("opacity",)),
    "set_visible": ("set_visible", True, ("vis",)),
    "set_scale": ("set_scale", True, ("x", "y", "z")),
    "show_shadow": ("set_shadow", True, ("cast",)),
    "play_anim": ("play_animation", True, ("anim", "loop")),
    "stop_anim": ("stop_animation", True, ()),
    "set_fog": ("set_fog", False, ("color", "density")),
    "set_skybox": ("set_sky_color", False, ("color",)),
    # Sound
    "play_sound": ("play_sound", False, ("snd",)),
    "stop_sound": ("stop_sound", False, ("snd",)),
    "play_music": ("play_music", False, ("snd",)),
    "stop_music": ("stop_music", False, ()),
    "set_volume": ("set_volume", False, ("vol",)),
    "play_3d": ("play_3d_sound", True, ("snd",)),
    "beep": ("beep", False, ("hz", "dur")),
    # UI
    "show_text": ("show_text", False, ("msg", "sec")),
    "hud_set_text": ("hud_set_text", False, ("id", "text")),
    "hud_show": ("hud_show", False, ("id", "show")),
    "show_dialog": ("show_dialog", False, ("msg", "btn")),
    "countdown": ("countdown", False, ("sec",)),
    "screen_shake": ("screen_shake", False, ("intensity", "dur")),
    # Control
    "stop_all": ("stop_all", False, ()),
    # Variables
    "change_var": ("change_var", False, ("name", "by")),
    # Models
    "spawn_object": ("spawn", False, ("template", "x", "y", "z")),
    "destroy_self": ("destroy", True, ()),
    "destroy_obj": ("destroy", False, ("name",)),
    "clone_obj": ("clone", False, ("name",)),
    "set_tag": ("add_tag", True, ("tag",)),
    "set_shape": ("set_shape", True, ("shape",)),
    "set_size": ("set_size", True, ("w", "h", "d")),
    "load_model": ("load_model", True, ("model",)),
    "attach_to": ("attach_to", True, ("parent",)),
    "detach": ("detach", True, ()),
    "emit_particles": ("emit_particles", True, ("fx", "count")),
    # Advanced
    "print": ("print", False, ("msg",)),
}

# Expression blocks that are a single runtime call.
_QUERIES: Dict[str, Tuple[str, bool, Tuple[str, ...]]] = {
    "is_grounded": ("is_grounded", True, ()),
    "random": ("random_between", False, ("min", "max")),
    "abs": ("abs", False, ("n",)),
    "round": ("round", False, ("n",)),
    "clamp": ("clamp", False, ("val", "min", "max")),
    "lerp": ("lerp", False, ("a", "b", "t")),
    "distance": ("distance", True, ("obj",)),
    "math_op": ("math_op", False, ("a", "op", "b")),
    "compare": ("compare", False, ("a", "op", "b")),
    "get_var": ("get_var", False, ("name",)),
    "get_prop": ("get_prop", False, ("obj", "prop")),
    "list_get": ("list_get", False, ("list", "i")),
    "list_length": ("list_length", False, ("list",)),
    "find_obj": ("find", False, ("name",)),
    "find_tag": ("find_by_tag", False, ("tag",)),
    "json_parse": ("json_parse", False, ("str",)),
    "local_storage_get": ("storage_get", False, ("key",)),
}


def _call_args(ctx, instance, with_self: bool, fields: Tuple[str, ...]) -> list:
    args = [SELF] if with_self else []
    args.extend(ctx.field(instance, name) for name in fields)
    return args


def _register_table_lowerings():
    for block_id, (method, with_self, fields) in _ACTIONS.items():

        def lower_action(ctx, instance, method=method, with_self=with_self, fields=fields):
            return [CallStmt(method, _call_args(ctx, instance, with_self, fields))]

        LOWERINGS[block_id] = lower_action

    for block_id, (method, with_self, fields) in _QUERIES.items():

        def lower_query(ctx, instance, method=method, with_self=with_self, fields=fields):
            return CallExpr(method, _call_args(ctx, instance, with_self, fields))

        LOWERINGS[block_id] = lower_query


_register_table_lowerings()


# Control

@lowers("wait")
def lower_wait(ctx, instance) -> List[Stmt]:
    return [Yield(CallExpr("wait", [ctx.number(instance, "sec")]))]


@lowers("wait_frames")
def lower_wait_frames(ctx, instance) -> List[Stmt]:
    return [Yield(CallExpr("wait_frames", [ctx.number(instance, "n")]))]


@lowers("glide_to")
def lower_glide_to(ctx, instance) -> List[Stmt]:
    args = [SELF] + [ctx.number(instance, name) for name in ("x", "y", "z", "sec")]
    return [Yield(CallExpr("glide_to", args))]


@lowers("repeat")
def lower_repeat(ctx, instance) -> List[Stmt]:
    count = CallExpr("to_count", [ctx.number(instance, "n")])
    return [
        For(
            var=ctx.next_loop_var(),
            iterable=Range([count]),
            body=ctx.branch(instance, "children", loop=True),
        )
    ]


@lowers("forever")
def lower_forever(ctx, instance) -> List[Stmt]:
    return [While(condition=Const(True), body=ctx.branch(instance, "children", loop=True))]


@lowers("while")
def lower_while(ctx, instance) -> List[Stmt]:
    return [
        While(
            condition=ctx.condition(instance, "cond"),
            body=ctx.branch(instance, "children", loop=True),
        )
    ]


@lowers("if")
def lower_if(ctx, instance) -> List[Stmt]:
    return [
        If(
            condition=ctx.condition(instance, "cond"),
            body=ctx.branch(instance, "children"),
            orelse=[],
        )
    ]


@lowers("if_else")
def lower_if_else(ctx, instance) -> List[Stmt]:
    return [
        If(
            condition=ctx.condition(instance, "cond"),
            body=ctx.branch(instance, "children"),
            orelse=ctx.branch(instance, "else_children"),
        )
    ]


@lowers("break")
def lower_break(ctx, instance) -> List[Stmt]:
    if ctx.loop_depth <= 0:
        ctx.warn("'break' outside of a loop does nothing.")
        return [Pass()]
    return [Break()]


@lowers("call_func")
def lower_call_func(ctx, instance) -> List[Stmt]:
    return [YieldFrom(CallExpr("call_function", [SELF, ctx.text(instance, "name")]))]


@lowers("return")
def lower_return(ctx, instance) -> List[Stmt]:
    return [Return(ctx.value(instance, "val"))]


# Variables and messages

@lowers("set_var")
def lower_set_var(ctx, instance) -> List[Stmt]:
    return [CallStmt("set_var", [ctx.text(instance, "name"), ctx.value(instance, "val")])]


@lowers("set_prop")
def lower_set_prop(ctx, instance) -> List[Stmt]:
    return [
        CallStmt(
            "set_prop",
            [
                ctx.text(instance, "obj"),
                ctx.literal(instance, "prop"),
                ctx.value(instance, "val"),
            ],
        )
    ]


@lowers("list_add")
def lower_list_add(ctx, instance) -> List[Stmt]:
    return [CallStmt("list_add", [ctx.text(instance, "list"), ctx.value(instance, "val")])]


@lowers("send_message")
def lower_send_message(ctx, instance) -> List[Stmt]:
    return [CallStmt("broadcast", [ctx.text(instance, "msg"), ctx.value(instance, "data")])]


@lowers("local_storage_set")
def lower_storage_set(ctx, instance) -> List[Stmt]:
    return [CallStmt("storage_set", [ctx.text(instance, "key"), ctx.value(instance, "val")])]


@lowers("json_get")
def lower_json_get(ctx, instance):
    # The object field names a variable holding parsed JSON.
    source = CallExpr("get_var", [ctx.text(instance, "obj")])
    return CallExpr("json_get", [source, ctx.text(instance, "key")])


# Logic

@lowers("and")
def lower_and(ctx, instance):
    return Binary("and", ctx.condition(instance, "a"), ctx.condition(instance, "b"))


@lowers("or")
def lower_or(ctx, instance):
    return Binary("or", ctx.condition(instance, "a"), ctx.condition(instance, "b"))


@lowers("not")
def lower_not(ctx, instance):
    return Unary("not", ctx.condition(instance, "a"))


# Advanced

@lowers("run_code")
def lower_run_code(ctx, instance) -> List[Stmt]:
    raw = instance.values.get("code") or ""
    code = _prepare_raw_code(str(raw))
    if not code:
        return [Pass()]
    return [RawCode(code=code)]
