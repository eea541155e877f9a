"""Built-in block catalog.

Categories: Events, Control, Motion, Physics, Appearance, Sound, UI & HUD,
Messages, Math & Logic, Variables, Models, Advanced.
"""

from typing import List, Sequence

from blockforge.block_registry import BlockDefinition, Category, FieldSpec
from blockforge.typesys import BlockKind, FieldType

KEY_OPTIONS = (
    "Space", "Enter", "ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight",
    "a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k", "l", "m",
    "n", "o", "p", "q", "r", "s", "t", "u", "v", "w", "x", "y", "z",
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "Shift", "Control", "Alt", "Tab", "Escape", "Backspace", "Delete",
    "F1", "F2", "F3", "F4", "F5",
)

MATERIAL_OPTIONS = ("standard", "metal", "glass", "emission", "wireframe")
SHAPE_OPTIONS = ("cube", "sphere", "cylinder", "cone", "capsule", "plane", "torus")
PARTICLE_OPTIONS = ("explosion", "fire", "smoke", "sparks", "stars", "confetti")
MATH_OPERATORS = ("+", "-", "*", "/", "^", "%")
COMPARE_OPERATORS = ("=", "≠", "<", ">", "≤", "≥")
OBJECT_PROPERTIES = ("x", "y", "z", "rotX", "rotY", "rotZ", "health", "visible")

HAT = BlockKind.HAT
STACK = BlockKind.STACK
C = BlockKind.CONDITIONAL
C2 = BlockKind.CONDITIONAL_ELSE
VALUE = BlockKind.VALUE_EXPR
BOOL = BlockKind.BOOL_EXPR


def number(name: str, default: float = 0) -> FieldSpec:
    return FieldSpec(name, FieldType.NUMBER, default)


def text(name: str, default: str = "") -> FieldSpec:
    return FieldSpec(name, FieldType.TEXT, default)


def boolean(name: str, default: bool = True) -> FieldSpec:
    return FieldSpec(name, FieldType.BOOLEAN, default)


def color(name: str, default: str) -> FieldSpec:
    return FieldSpec(name, FieldType.COLOR, default)


def choice(name: str, options: Sequence[str], default: str) -> FieldSpec:
    return FieldSpec(name, FieldType.ENUM, default, options=tuple(options))


def key(name: str, default: str = "Space") -> FieldSpec:
    return FieldSpec(name, FieldType.KEYCODE, default, options=KEY_OPTIONS)


def asset(name: str) -> FieldSpec:
    return FieldSpec(name, FieldType.ASSET_REF, "")


def long_text(name: str, default: str = "") -> FieldSpec:
    return FieldSpec(name, FieldType.LONG_TEXT, default)


def socket(name: str, neutral: bool) -> FieldSpec:
    return FieldSpec(name, FieldType.BOOL_SOCKET, None, socket_default=neutral)


def xyz(default: float = 0) -> tuple[FieldSpec, ...]:
    return (number("x", default), number("y", default), number("z", default))


_CATALOG = [
    ("events", "Events", "#f59e0b", [
        ("on_start", "When game starts", HAT, ()),
        ("on_update", "Every frame", HAT, ()),
        ("on_keydown", "When key pressed", HAT, (key("key"),)),
        ("on_keyup", "When key released", HAT, (key("key"),)),
        ("on_click", "When clicked", HAT, ()),
        ("on_collide", "On collision with", HAT, (text("tag", "Wall"),)),
        ("on_trigger", "On trigger enter", HAT, (text("tag", "Zone"),)),
        ("on_message", "When message received", HAT, (text("msg", "hit"),)),
        ("on_timer", "Every N seconds", HAT, (number("sec", 1),)),
        ("on_overlap", "While overlapping", HAT, (text("tag", "Pickup"),)),
    ]),
    ("control", "Control", "#8b5cf6", [
        ("wait", "Wait seconds", STACK, (number("sec", 1),)),
        ("wait_frames", "Wait frames", STACK, (number("n", 1),)),
        ("repeat", "Repeat N times", C, (number("n", 10),)),
        ("forever", "Forever", C, ()),
        ("if", "If", C, (socket("cond", True),)),
        ("if_else", "If / Else", C2, (socket("cond", True),)),
        ("while", "While", C, (socket("cond", False),)),
        ("break", "Break loop", STACK, ()),
        ("stop_all", "Stop all scripts", STACK, ()),
        ("call_func", "Call function", STACK, (text("name", "myFunc"),)),
        ("def_func", "Define function", HAT, (text("name", "myFunc"),)),
        ("return", "Return", STACK, (text("val", "0"),)),
    ]),
    ("motion", "Motion", "#06b6d4", [
        ("move_forward", "Move forward by", STACK, (number("dist", 1),)),
        ("set_pos", "Set position X Y Z", STACK, xyz()),
        ("move_by", "Move by X Y Z", STACK, xyz()),
        ("set_rot", "Set rotation X Y Z", STACK, xyz()),
        ("rotate_by", "Rotate by X Y Z", STACK, xyz()),
        ("look_at", "Look at object", STACK, (text("target", "Player"),)),
        ("glide_to", "Glide to X Y Z in secs", STACK, xyz() + (number("sec", 1),)),
        ("set_speed", "Set move speed", STACK, (number("spd", 5),)),
        ("teleport", "Teleport to spawn", STACK, ()),
    ]),
    ("physics", "Physics", "#10b981", [
        ("add_force", "Add force X Y Z", STACK, (number("x"), number("y", 10), number("z"))),
        ("set_velocity", "Set velocity X Y Z", STACK, xyz()),
        ("jump", "Jump with force", STACK, (number("force", 5),)),
        ("set_gravity", "Set gravity", STACK, (number("g", -9.8),)),
        ("set_physics", "Enable physics", STACK, (boolean("enabled"),)),
        ("set_mass", "Set mass", STACK, (number("mass", 1),)),
        ("set_friction", "Set friction", STACK, (number("f", 0.5),)),
        ("freeze_rot", "Freeze rotation", STACK, (boolean("freeze"),)),
        ("is_grounded", "Is grounded?", BOOL, ()),
    ]),
    ("appearance", "Appearance", "#ec4899", [
        ("set_color", "Set color", STACK, (color("color", "#4488ff"),)),
        ("set_texture", "Set texture", STACK, (asset("tex"),)),
        ("set_material", "Set material type", STACK, (choice("mat", MATERIAL_OPTIONS, "standard"),)),
        ("set_emissive", "Set glow color", STACK, (color("color", "#ffffff"), number("intensity", 1))),
        ("set_opacity", "Set opacity", STACK, (number("opacity", 1),)),
        ("set_visible", "Set visible", STACK, (boolean("vis"),)),
        ("set_scale", "Set scale X Y Z", STACK, xyz(1)),
        ("show_shadow", "Cast shadow", STACK, (boolean("cast"),)),
        ("play_anim", "Play animation", STACK, (text("anim", "walk"), boolean("loop"))),
        ("stop_anim", "Stop animation", STACK, ()),
        ("set_fog", "Set scene fog", STACK, (color("color", "#aabbcc"), number("density", 0.05))),
        ("set_skybox", "Set sky color", STACK, (color("color", "#87ceeb"),)),
    ]),
    ("sound", "Sound", "#f97316", [
        ("play_sound", "Play sound", STACK, (asset("snd"),)),
        ("stop_sound", "Stop sound", STACK, (asset("snd"),)),
        ("play_music", "Play music (loop)", STACK, (asset("snd"),)),
        ("stop_music", "Stop music", STACK, ()),
        ("set_volume", "Set volume", STACK, (number("vol", 1),)),
        ("play_3d", "Play 3D sound at pos", STACK, (asset("snd"),)),
        ("beep", "Beep tone Hz", STACK, (number("hz", 440), number("dur", 0.2))),
    ]),
    ("ui", "UI & HUD", "#84cc16", [
        ("show_text", "Show text", STACK, (text("msg", "Hello!"), number("sec", 3))),
        ("hud_set_text", "Set HUD text", STACK, (text("id", "label1"), text("text", "Score: 0"))),
        ("hud_show", "Show/hide HUD element", STACK, (text("id", "label1"), boolean("show"))),
        ("show_dialog", "Show dialog with button", STACK, (text("msg", "Game Over"), text("btn", "Restart"))),
        ("countdown", "Start countdown from", STACK, (number("sec", 60),)),
        ("screen_shake", "Screen shake", STACK, (number("intensity", 0.3), number("dur", 0.5))),
    ]),
    ("messages", "Messages", "#0ea5e9", [
        ("send_message", "Broadcast message", STACK, (text("msg", "hit"), text("data", ""))),
    ]),
    ("math", "Math & Logic", "#64748b", [
        ("math_op", "Number operation", VALUE, (number("a"), choice("op", MATH_OPERATORS, "+"), number("b"))),
        ("random", "Random between", VALUE, (number("min", 0), number("max", 10))),
        ("abs", "Absolute value of", VALUE, (number("n"),)),
        ("round", "Round", VALUE, (number("n"),)),
        ("clamp", "Clamp between min max", VALUE, (number("val"), number("min"), number("max", 100))),
        ("compare", "Compare", BOOL, (number("a"), choice("op", COMPARE_OPERATORS, "="), number("b"))),
        ("and", "And", BOOL, (socket("a", True), socket("b", True))),
        ("or", "Or", BOOL, (socket("a", False), socket("b", False))),
        ("not", "Not", BOOL, (socket("a", False),)),
        ("distance", "Distance to object", VALUE, (text("obj", "Player"),)),
        ("lerp", "Lerp from to t", VALUE, (number("a", 0), number("b", 1), number("t", 0.5))),
    ]),
    ("variables", "Variables", "#dc2626", [
        ("set_var", "Set variable", STACK, (text("name", "myVar"), text("val", "0"))),
        ("change_var", "Change variable by", STACK, (text("name", "score"), number("by", 1))),
        ("get_var", "Get variable", VALUE, (text("name", "myVar"),)),
        ("get_prop", "Get object property", VALUE, (text("obj", "Player"), choice("prop", OBJECT_PROPERTIES, "x"))),
        ("set_prop", "Set object property", STACK, (
            text("obj", "Player"),
            choice("prop", OBJECT_PROPERTIES, "x"),
            text("val", "0"),
        )),
        ("list_add", "Add to list", STACK, (text("list", "items"), text("val", "0"))),
        ("list_get", "Item N of list", VALUE, (text("list", "items"), number("i", 0))),
        ("list_length", "Length of list", VALUE, (text("list", "items"),)),
    ]),
    ("models", "Models & Shapes", "#7c3aed", [
        ("spawn_object", "Spawn object at pos", STACK, (text("template", "Cube"),) + xyz()),
        ("destroy_self", "Destroy this object", STACK, ()),
        ("destroy_obj", "Destroy object", STACK, (text("name", "Enemy"),)),
        ("clone_obj", "Clone object", STACK, (text("name", "Enemy"),)),
        ("find_obj", "Find object named", VALUE, (text("name", "Coin"),)),
        ("find_tag", "Find all with tag", VALUE, (text("tag", "Enemy"),)),
        ("set_tag", "Set object tag", STACK, (text("tag", "Enemy"),)),
        ("set_shape", "Change shape", STACK, (choice("shape", SHAPE_OPTIONS, "cube"),)),
        ("set_size", "Set size W H D", STACK, (number("w", 1), number("h", 1), number("d", 1))),
        ("load_model", "Load 3D model", STACK, (asset("model"),)),
        ("attach_to", "Attach to parent", STACK, (text("parent", "Player"),)),
        ("detach", "Detach from parent", STACK, ()),
        ("emit_particles", "Emit particle effect", STACK, (
            choice("fx", PARTICLE_OPTIONS, "explosion"),
            number("count", 20),
        )),
    ]),
    ("advanced", "Advanced", "#374151", [
        ("run_code", "Run Python", STACK, (long_text("code", 'rt.print("hello")'),)),
        ("json_parse", "Parse JSON string", VALUE, (text("str", "{}"),)),
        ("json_get", "Get JSON key", VALUE, (text("obj", "data"), text("key", "name"))),
        ("local_storage_set", "Save to storage", STACK, (text("key", "save"), text("val", "0"))),
        ("local_storage_get", "Load from storage", VALUE, (text("key", "save"),)),
        ("print", "Print to console", STACK, (text("msg", "debug"),)),
    ]),
]


def build_categories() -> List[Category]:
    categories = []
    for category_id, name, swatch, blocks in _CATALOG:
        definitions = tuple(
            BlockDefinition(
                id=block_id,
                category=category_id,
                label=label,
                kind=kind,
                fields=tuple(fields),
            )
            for block_id, label, kind, fields in blocks
        )
        categories.append(Category(id=category_id, name=name, color=swatch, blocks=definitions))
    return categories
