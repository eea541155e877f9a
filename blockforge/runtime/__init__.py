"""Game runtime for compiled BlockForge programs.

This package only uses relative imports so it can be copied next to an
exported program and run without BlockForge installed.
"""

from .config import RuntimeConfig
from .events import EventBus, Subscription
from .faults import RuntimeFault
from .loader import load_program, load_program_file
from .objects import GameObjectState, ObjectRegistry, Vec3
from .runtime import GameRuntime, RuntimeState
from .scheduler import Scheduler, WaitFrames, WaitSeconds, WaitUntil
from .stdlib import to_number

__all__ = [
    "EventBus",
    "GameObjectState",
    "GameRuntime",
    "ObjectRegistry",
    "RuntimeConfig",
    "RuntimeFault",
    "RuntimeState",
    "Scheduler",
    "Subscription",
    "Vec3",
    "WaitFrames",
    "WaitSeconds",
    "WaitUntil",
    "load_program",
    "load_program_file",
    "to_number",
]
