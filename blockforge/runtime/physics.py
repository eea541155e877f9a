import math
from typing import Iterable

from .objects import GameObjectState

# Fraction of horizontal velocity kept per second per unit of friction while grounded.
GROUND_DAMPING = 1.0


def step_physics(
    objects: Iterable[GameObjectState],
    gravity: float,
    floor_y: float,
    dt: float,
) -> None:
    """Advance every physics-enabled object by one frame.

    Gravity feeds velocity, velocity feeds position, and the floor plane clamps
    the position, zeroes downward velocity and marks the object grounded.
    """
    for obj in objects:
        if not obj.alive or not obj.physics:
            continue

        obj.velocity.y += gravity * dt
        obj.position.add(obj.velocity.x * dt, obj.velocity.y * dt, obj.velocity.z * dt)

        if obj.position.y <= floor_y:
            obj.position.y = floor_y
            if obj.velocity.y < 0:
                obj.velocity.y = 0.0
            obj.grounded = True
            damping = max(0.0, 1.0 - GROUND_DAMPING * max(0.0, obj.friction) * dt)
            obj.velocity.x *= damping
            obj.velocity.z *= damping
        else:
            obj.grounded = False

        obj.velocity.sanitize()
        obj.position.sanitize()


def apply_force(obj: GameObjectState, x: float, y: float, z: float) -> None:
    mass = obj.mass if math.isfinite(obj.mass) and obj.mass > 0 else 1.0
    obj.velocity.add(x / mass, y / mass, z / mass)
    obj.velocity.sanitize()


def try_jump(obj: GameObjectState, force: float) -> bool:
    if not obj.grounded:
        return False
    obj.velocity.y = force
    obj.grounded = False
    obj.velocity.sanitize()
    return True
