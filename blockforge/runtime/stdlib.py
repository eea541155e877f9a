"""
Runtime library called by generated scripts.

Every method that takes an object accepts a live object, an object id or name,
or ``None``. Missing or destroyed objects turn the call into a silent no-op
(queries return a neutral value) so scripts keep running after a destroy.
"""

import json
import logging
import math
from typing import Any, List, Optional

from .objects import SHAPES, GameObjectState, Vec3
from .physics import apply_force, try_jump
from .scheduler import WaitFrames, WaitSeconds, WaitUntil

logger = logging.getLogger(__name__)

_COMPARATORS = {
    "=": lambda a, b: a == b,
    "==": lambda a, b: a == b,
    "≠": lambda a, b: a != b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "≤": lambda a, b: a <= b,
    "<=": lambda a, b: a <= b,
    "≥": lambda a, b: a >= b,
    ">=": lambda a, b: a >= b,
}

_NUMERIC_PROPS = {
    "x": ("position", "x"),
    "y": ("position", "y"),
    "z": ("position", "z"),
    "rotX": ("rotation", "x"),
    "rotY": ("rotation", "y"),
    "rotZ": ("rotation", "z"),
}


def to_number(value: Any) -> float:
    """Coerce a script value to a finite float; anything else becomes 0.0."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class ScriptLibrary:
    """Block-level operations mixed into :class:`GameRuntime`."""

    # Resolution

    def _resolve(self, target: Any) -> Optional[GameObjectState]:
        if isinstance(target, GameObjectState):
            return target if target.alive else None
        if isinstance(target, str) and target:
            return self.objects.find(target)
        return None

    # Suspension points

    def wait(self, seconds: Any) -> WaitSeconds:
        return WaitSeconds(to_number(seconds))

    def wait_frames(self, frames: Any) -> WaitFrames:
        return WaitFrames(int(math.ceil(to_number(frames))))

    def glide_to(self, obj: Any, x: Any, y: Any, z: Any, seconds: Any) -> WaitUntil:
        target = self._resolve(obj)
        if target is None:
            return WaitUntil(lambda: True)
        tween = self.animations.glide(
            target, Vec3(to_number(x), to_number(y), to_number(z)), to_number(seconds)
        )
        return WaitUntil(lambda: tween.done)

    # Motion

    def set_pos(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.position.set(to_number(x), to_number(y), to_number(z))

    def move_by(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.position.add(to_number(x), to_number(y), to_number(z))
            target.position.sanitize()

    def move_forward(self, obj, distance) -> None:
        target = self._resolve(obj)
        if target is None:
            return
        # Forward is -Z rotated by the yaw (degrees).
        yaw = math.radians(target.rotation.y)
        d = to_number(distance)
        target.position.add(-math.sin(yaw) * d, 0.0, -math.cos(yaw) * d)
        target.position.sanitize()

    def set_rot(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.rotation.set(to_number(x), to_number(y), to_number(z))

    def rotate_by(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.rotation.add(to_number(x), to_number(y), to_number(z))
            target.rotation.sanitize()

    def look_at(self, obj, other) -> None:
        target, focus = self._resolve(obj), self._resolve(other)
        if target is None or focus is None or target is focus:
            return
        dx = focus.position.x - target.position.x
        dy = focus.position.y - target.position.y
        dz = focus.position.z - target.position.z
        target.rotation.y = math.degrees(math.atan2(-dx, -dz))
        target.rotation.x = math.degrees(math.atan2(dy, math.hypot(dx, dz)))

    def set_speed(self, obj, speed) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.speed = to_number(speed)

    def teleport(self, obj) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.position = target.spawn_point.copy()
            target.velocity.set(0.0, 0.0, 0.0)

    # Physics

    def add_force(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            apply_force(target, to_number(x), to_number(y), to_number(z))

    def set_velocity(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.velocity.set(to_number(x), to_number(y), to_number(z))

    def jump(self, obj, force) -> bool:
        target = self._resolve(obj)
        if target is None:
            return False
        return try_jump(target, to_number(force))

    def set_gravity(self, gravity) -> None:
        self.gravity = to_number(gravity)

    def set_physics(self, obj, enabled) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.physics = bool(enabled)

    def set_mass(self, obj, mass) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.mass = to_number(mass)

    def set_friction(self, obj, friction) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.friction = to_number(friction)

    def freeze_rotation(self, obj, frozen) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.freeze_rotation = bool(frozen)

    def is_grounded(self, obj) -> bool:
        target = self._resolve(obj)
        return bool(target is not None and target.grounded)

    # Appearance

    def set_color(self, obj, color) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.color = str(color)

    def set_texture(self, obj, texture) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.texture = str(texture)

    def set_material(self, obj, material) -> None:
        target = self._resolve(obj)
        if target is None:
            return
        target.material = str(material)
        if target.material == "glass":
            target.opacity = 0.3

    def set_emissive(self, obj, color, intensity) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.emissive_color = str(color)
            target.emissive_intensity = to_number(intensity)

    def set_opacity(self, obj, opacity) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.opacity = max(0.0, min(1.0, to_number(opacity)))

    def set_visible(self, obj, visible) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.visible = bool(visible)

    def set_scale(self, obj, x, y, z) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.scale.set(to_number(x), to_number(y), to_number(z))

    def set_shadow(self, obj, cast) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.cast_shadow = bool(cast)

    def play_animation(self, obj, name, loop=True) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.animation = str(name)
            target.animation_loop = bool(loop)

    def stop_animation(self, obj) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.animation = None

    def set_fog(self, color, density) -> None:
        self.scene.fog = (str(color), max(0.0, to_number(density)))

    def set_sky_color(self, color) -> None:
        self.scene.sky_color = str(color)

    # Sound

    def play_sound(self, name) -> None:
        self.audio.play_sound(str(name))

    def stop_sound(self, name) -> None:
        self.audio.stop_sound(str(name))

    def play_music(self, name) -> None:
        self.audio.play_music(str(name))

    def stop_music(self) -> None:
        self.audio.stop_music()

    def set_volume(self, volume) -> None:
        self.audio.set_volume(to_number(volume))

    def play_3d_sound(self, obj, name) -> None:
        if self._resolve(obj) is not None:
            self.audio.play_sound(str(name))

    def beep(self, hz, duration) -> None:
        self.audio.beep(to_number(hz), to_number(duration))

    # UI

    def show_text(self, message, seconds) -> None:
        self.hud.toast(str(message), to_number(seconds))

    def hud_set_text(self, element_id, text) -> None:
        self.hud.set_text(str(element_id), str(text))

    def hud_show(self, element_id, visible) -> None:
        self.hud.show(str(element_id), bool(visible))

    def show_dialog(self, message, button) -> None:
        self.hud.open_dialog(str(message), str(button))

    def countdown(self, seconds) -> None:
        self.hud.start_countdown(to_number(seconds))

    def screen_shake(self, intensity, duration) -> None:
        self.hud.shake(to_number(intensity), to_number(duration))

    # Objects

    def spawn(self, template, x=0, y=0, z=0) -> GameObjectState:
        template = str(template)
        source = self.objects.find(template)
        shape = template.lower()
        if source is not None:
            shape = source.type
        elif shape not in SHAPES:
            shape = "cube"
        obj = GameObjectState(
            id=self.objects.unique_id(f"spawn_{shape}"),
            name=template,
            type=shape,
            position=Vec3(to_number(x), to_number(y), to_number(z)),
            color="#ff4444",
        )
        if source is not None:
            obj.color = source.color
            obj.scale = source.scale.copy()
            obj.size = source.size.copy()
            obj.tags = set(source.tags)
            obj.physics = source.physics
            obj.mass = source.mass
            obj.is_trigger = source.is_trigger
        obj.spawn_point = obj.position.copy()
        self._register_object(obj)
        return obj

    def clone(self, obj) -> Optional[GameObjectState]:
        source = self._resolve(obj)
        if source is None:
            return None
        return self.spawn(
            source.name,
            source.position.x + 1,
            source.position.y,
            source.position.z,
        )

    def find(self, name) -> Optional[GameObjectState]:
        return self._resolve(str(name))

    def find_by_tag(self, tag) -> List[GameObjectState]:
        return self.objects.by_tag(str(tag))

    def add_tag(self, obj, tag) -> None:
        target = self._resolve(obj)
        if target is not None and str(tag):
            target.tags.add(str(tag))

    def set_shape(self, obj, shape) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.type = str(shape)
            self.scene.set_shape(target.id, target.type)

    def set_size(self, obj, w, h, d) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.size.set(to_number(w), to_number(h), to_number(d))

    def load_model(self, obj, model) -> None:
        target = self._resolve(obj)
        if target is not None:
            target.model = str(model)

    def attach_to(self, obj, parent) -> None:
        target, holder = self._resolve(obj), self._resolve(parent)
        if target is None or holder is None:
            return
        if self.scene.reparent(target.id, holder.id):
            target.parent = holder.id

    def detach(self, obj) -> None:
        target = self._resolve(obj)
        if target is not None and self.scene.reparent(target.id, None):
            target.parent = None

    def emit_particles(self, obj, fx, count) -> None:
        target = self._resolve(obj)
        if target is not None:
            self.scene.add_effect(str(fx), max(0, int(to_number(count))), target.position)

    # Variables and lists

    def get_var(self, name) -> Any:
        return self.variables.get(str(name), 0)

    def set_var(self, name, value) -> None:
        self.variables[str(name)] = value

    def change_var(self, name, amount) -> None:
        key = str(name)
        self.variables[key] = _finite(to_number(self.variables.get(key, 0)) + to_number(amount))

    def get_prop(self, obj, prop) -> Any:
        target = self._resolve(obj)
        if target is None:
            return 0
        prop = str(prop)
        if prop in _NUMERIC_PROPS:
            vector, axis = _NUMERIC_PROPS[prop]
            return getattr(getattr(target, vector), axis)
        if prop == "health":
            return target.health
        if prop == "visible":
            return target.visible
        return 0

    def set_prop(self, obj, prop, value) -> None:
        target = self._resolve(obj)
        if target is None:
            return
        prop = str(prop)
        if prop in _NUMERIC_PROPS:
            vector, axis = _NUMERIC_PROPS[prop]
            setattr(getattr(target, vector), axis, to_number(value))
        elif prop == "health":
            target.health = to_number(value)
        elif prop == "visible":
            target.visible = bool(value)
        else:
            logger.warning("Unknown object property '%s'.", prop)

    def list_add(self, name, value) -> None:
        self.lists.setdefault(str(name), []).append(value)

    def list_get(self, name, index) -> Any:
        items = self.lists.get(str(name), [])
        position = int(to_number(index))
        if 0 <= position < len(items):
            return items[position]
        return 0

    def list_length(self, name) -> int:
        return len(self.lists.get(str(name), []))

    # Messages

    def broadcast(self, name, data=None) -> int:
        return self.emit(f"message:{name}", data)

    # Math

    to_number = staticmethod(to_number)

    def to_count(self, value) -> int:
        return max(0, int(math.ceil(to_number(value))))

    def math_op(self, a, op, b) -> float:
        a, b = to_number(a), to_number(b)
        if op == "+":
            return _finite(a + b)
        if op == "-":
            return _finite(a - b)
        if op == "*":
            return _finite(a * b)
        if op == "/":
            return _finite(a / b) if b != 0 else 0.0
        if op == "%":
            return _finite(math.fmod(a, b)) if b != 0 else 0.0
        if op == "^":
            try:
                return _finite(math.pow(a, b))
            except (OverflowError, ValueError):
                return 0.0
        logger.warning("Unknown math operator %r.", op)
        return 0.0

    def random_between(self, low, high) -> float:
        low, high = to_number(low), to_number(high)
        return self.random.uniform(min(low, high), max(low, high))

    def abs(self, value) -> float:
        return abs(to_number(value))

    def round(self, value) -> int:
        # Halves round up, as scripts expect from a game editor.
        return int(math.floor(to_number(value) + 0.5))

    def clamp(self, value, low, high) -> float:
        return min(to_number(high), max(to_number(low), to_number(value)))

    def lerp(self, a, b, t) -> float:
        a, b = to_number(a), to_number(b)
        return _finite(a + (b - a) * to_number(t))

    def compare(self, a, op, b) -> bool:
        comparator = _COMPARATORS.get(op)
        if comparator is None:
            logger.warning("Unknown comparison operator %r.", op)
            return False
        return comparator(to_number(a), to_number(b))

    def distance(self, obj, other) -> float:
        first, second = self._resolve(obj), self._resolve(other)
        if first is None or second is None:
            return 0.0
        return first.position.distance_to(second.position)

    # Storage, JSON and console

    def storage_set(self, key, value) -> None:
        self.storage[str(key)] = value
        self._save_storage()

    def storage_get(self, key) -> Any:
        return self.storage.get(str(key))

    def json_parse(self, text) -> Any:
        try:
            return json.loads(str(text))
        except ValueError:
            logger.warning("Could not parse JSON text %r.", text)
            return None

    def json_get(self, data, key) -> Any:
        if isinstance(data, dict):
            return data.get(str(key))
        if isinstance(data, list):
            index = int(to_number(key))
            if 0 <= index < len(data):
                return data[index]
        return None

    def print(self, message) -> None:
        text = str(message)
        self.output.append(text)
        logger.info("%s", text)
