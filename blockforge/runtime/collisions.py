from typing import List, Sequence, Set, Tuple

from .objects import GameObjectState

ContactEvent = Tuple[str, GameObjectState]


def overlaps(a: GameObjectState, b: GameObjectState) -> bool:
    ea, eb = a.half_extents(), b.half_extents()
    return (
        abs(a.position.x - b.position.x) <= ea.x + eb.x
        and abs(a.position.y - b.position.y) <= ea.y + eb.y
        and abs(a.position.z - b.position.z) <= ea.z + eb.z
    )


def contact_tags(obj: GameObjectState) -> List[str]:
    """Tags an object answers to in contact events: its tags and its name."""
    return sorted(obj.tags | {obj.name})


class CollisionDetector:
    """Axis-aligned box overlap tracking between live objects.

    Each frame produces ``collide``/``trigger`` events for contacts that just
    began and ``overlap`` events for every contact still in progress. The
    payload of each event is the other object.
    """

    def __init__(self):
        self._contacts: Set[Tuple[str, str]] = set()

    def detect(self, objects: Sequence[GameObjectState]) -> List[ContactEvent]:
        live = [obj for obj in objects if obj.alive]
        current: Set[Tuple[str, str]] = set()
        events: List[ContactEvent] = []

        for i, first in enumerate(live):
            for second in live[i + 1:]:
                if not overlaps(first, second):
                    continue
                pair = (first.id, second.id)
                current.add(pair)
                began = pair not in self._contacts
                kind = "trigger" if first.is_trigger or second.is_trigger else "collide"
                for obj, other in ((first, second), (second, first)):
                    for tag in contact_tags(other):
                        if began:
                            events.append((f"{kind}:{obj.id}:{tag}", other))
                        events.append((f"overlap:{obj.id}:{tag}", other))

        self._contacts = current
        return events

    def forget(self, object_id: str) -> None:
        self._contacts = {pair for pair in self._contacts if object_id not in pair}
