from dataclasses import dataclass, field
from typing import Dict, List

from .objects import GameObjectState, Vec3


@dataclass
class Tween:
    """Linear position animation of one object."""

    target: GameObjectState
    start: Vec3
    end: Vec3
    duration: float
    elapsed: float = 0.0
    done: bool = False

    def advance(self, dt: float) -> None:
        if self.done:
            return
        if not self.target.alive:
            self.done = True
            return
        self.elapsed += dt
        t = 1.0 if self.duration <= 0 else min(1.0, self.elapsed / self.duration)
        self.target.position.set(
            self.start.x + (self.end.x - self.start.x) * t,
            self.start.y + (self.end.y - self.start.y) * t,
            self.start.z + (self.end.z - self.start.z) * t,
        )
        if t >= 1.0:
            self.done = True

    def cancel(self) -> None:
        self.done = True


@dataclass
class AnimationSystem:
    tweens: List[Tween] = field(default_factory=list)
    _by_object: Dict[str, Tween] = field(default_factory=dict)

    def glide(self, obj: GameObjectState, end: Vec3, duration: float) -> Tween:
        """Start a glide, replacing any glide already running on ``obj``."""
        previous = self._by_object.get(obj.id)
        if previous is not None:
            previous.cancel()
        tween = Tween(target=obj, start=obj.position.copy(), end=end, duration=duration)
        if duration <= 0:
            tween.advance(0.0)
        else:
            self.tweens.append(tween)
            self._by_object[obj.id] = tween
        return tween

    def advance(self, dt: float) -> None:
        for tween in list(self.tweens):
            tween.advance(dt)
        self.tweens = [tween for tween in self.tweens if not tween.done]
        self._by_object = {
            object_id: tween for object_id, tween in self._by_object.items() if not tween.done
        }

    def cancel_object(self, object_id: str) -> None:
        tween = self._by_object.pop(object_id, None)
        if tween is not None:
            tween.cancel()
