"""
Game runtime that hosts generated programs.

Frame order of :meth:`GameRuntime.step`:

1. clamp ``dt``
2. deliver queued input events
3. physics
4. collision, trigger and overlap detection
5. animations and scene effects
6. resume suspended tasks that are due
7. fire timers
8. advance HUD timers
9. emit ``update``
"""

import inspect
import json
import logging
import math
import os
import random
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

from .animation import AnimationSystem
from .audio import AudioState
from .collisions import CollisionDetector
from .config import RuntimeConfig
from .events import EventBus, Subscription
from .faults import RuntimeFault
from .hud import HudState
from .objects import GameObjectState, ObjectRegistry
from .physics import step_physics
from .scene import SceneGraph
from .scheduler import Scheduler
from .stdlib import ScriptLibrary

logger = logging.getLogger(__name__)

OUTPUT_HISTORY = 1000


class RuntimeState(Enum):
    LOADING = "loading"
    RUNNING = "running"
    STOPPED = "stopped"


class GameRuntime(ScriptLibrary):
    """
    Object registry, event bus, scheduler and per-frame simulation.

    Usage:
        rt = GameRuntime(RuntimeConfig(realtime=False))
        rt.add_object({"id": "player", "name": "Player", "physics": True})
        rt.on("start", lambda event: rt.print("hello"))
        rt.start()
        rt.step(1 / 60)
    """

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self.config = config or RuntimeConfig()
        self.state = RuntimeState.LOADING
        self.objects = ObjectRegistry()
        self.scene = SceneGraph()
        self.hud = HudState()
        self.audio = AudioState()
        self.animations = AnimationSystem()
        self.collisions = CollisionDetector()
        self.scheduler = Scheduler(on_fault=self._record_fault)
        self.bus = EventBus(self.scheduler, on_fault=self._record_fault)
        self.gravity = self.config.gravity
        self.random = random.Random(self.config.seed)
        self.variables: Dict[str, Any] = {}
        self.lists: Dict[str, List[Any]] = {}
        self.storage: Dict[str, Any] = self._load_storage()
        self.faults: List[RuntimeFault] = []
        self.output: Deque[str] = deque(maxlen=OUTPUT_HISTORY)
        self.keys_down: set = set()
        self._functions: Dict[Tuple[str, str], Callable[..., Any]] = {}
        self._timer_counts: Dict[str, int] = {}
        self._input: Deque[Tuple[str, Any]] = deque()
        self._pending_parents: Dict[str, str] = {}

    # Objects

    def add_object(self, spec: Mapping[str, Any]) -> GameObjectState:
        """Create an object from its project description."""
        return self._register_object(GameObjectState.from_spec(spec))

    def _register_object(self, obj: GameObjectState) -> GameObjectState:
        self.objects.add(obj)
        self.scene.add_node(obj.id, obj.type)
        if obj.parent is not None:
            parent_id, obj.parent = obj.parent, None
            self._link_parent(obj, parent_id)
        # Children listed before this object were waiting for it.
        waiting = [
            child_id for child_id, parent_id in self._pending_parents.items() if parent_id == obj.id
        ]
        for child_id in waiting:
            del self._pending_parents[child_id]
            child = self.objects.get(child_id)
            if child is not None:
                self._link_parent(child, obj.id)
        return obj

    def _link_parent(self, obj: GameObjectState, parent_id: str) -> None:
        if self.objects.get(parent_id) is None:
            self._pending_parents[obj.id] = parent_id
        elif self.scene.reparent(obj.id, parent_id):
            obj.parent = parent_id

    def get_object(self, object_id: str) -> Optional[GameObjectState]:
        return self.objects.get(object_id)

    def destroy(self, obj: Any) -> None:
        """Remove an object with its scene node, handlers, timers and functions."""
        target = self._resolve(obj)
        if target is None:
            return
        target.alive = False
        self.objects.remove(target.id)
        self.scene.remove_node(target.id)
        self.collisions.forget(target.id)
        self.animations.cancel_object(target.id)
        self.bus.remove_owner(target.id)
        self.scheduler.remove_timers(target.id)
        for key in [key for key in self._functions if key[0] == target.id]:
            del self._functions[key]
        for child in self.objects:
            if child.parent == target.id:
                child.parent = None
        logger.debug("Destroyed object %s", target.id)

    # Registration

    def on(self, event: str, handler: Callable[..., Any], owner: Any = None) -> Optional[Subscription]:
        owner_id = self._owner_id(owner)
        if owner is not None and owner_id is None:
            return None
        return self.bus.subscribe(str(event), handler, owner_id=owner_id)

    def every(self, seconds: Any, handler: Callable[..., Any], owner: Any = None) -> Optional[str]:
        """Run ``handler`` every ``seconds`` of game time as ``timer:<objectId>:<n>``."""
        owner_id = self._owner_id(owner)
        if owner is not None and owner_id is None:
            return None
        interval = self.to_number(seconds)
        if interval <= 0:
            interval = self.config.fixed_timestep
        key = owner_id or "_global"
        self._timer_counts[key] = self._timer_counts.get(key, 0) + 1
        event = f"timer:{key}:{self._timer_counts[key]}"
        self.bus.subscribe(event, handler, owner_id=owner_id)
        self.scheduler.add_timer(event, interval, owner_id=owner_id)
        return event

    def define_function(self, owner: Any, name: Any, fn: Callable[..., Any]) -> None:
        owner_id = self._owner_id(owner)
        if owner_id is None:
            return
        self._functions[(owner_id, str(name))] = fn

    def call_function(self, owner: Any, name: Any):
        """Run an object's block function; use with ``yield from``."""
        owner_id = self._owner_id(owner)
        fn = self._functions.get((owner_id, str(name))) if owner_id is not None else None
        if fn is None:
            if owner_id is not None and owner_id in self.objects:
                logger.warning("Object '%s' has no function '%s'.", owner_id, name)
            return None
        result = fn()
        if inspect.isgenerator(result):
            result = yield from result
        return result

    def _owner_id(self, owner: Any) -> Optional[str]:
        target = self._resolve(owner)
        return target.id if target is not None else None

    # Lifecycle

    def start(self) -> None:
        if self.state != RuntimeState.LOADING:
            logger.warning("start() ignored; runtime is %s.", self.state.value)
            return
        for child_id, parent_id in self._pending_parents.items():
            logger.warning("Object %s has unknown parent %s; left unattached.", child_id, parent_id)
        self._pending_parents.clear()
        self.state = RuntimeState.RUNNING
        logger.info("Starting with %d objects.", len(self.objects))
        self.emit("start")

    def stop_all(self) -> None:
        """Stop delivering events (except ``start``); suspended tasks still resume."""
        if self.state != RuntimeState.STOPPED:
            logger.info("All scripts stopped.")
        self.state = RuntimeState.STOPPED
        self.bus.stopped = True

    def close(self) -> None:
        self.stop_all()
        self.scheduler.close()
        self.bus.clear()
        self._input.clear()

    def emit(self, event: str, payload: Any = None) -> int:
        return self.bus.emit(event, payload)

    # Input

    def press_key(self, code: str) -> None:
        self._input.append((f"keydown:{code}", None))

    def release_key(self, code: str) -> None:
        self._input.append((f"keyup:{code}", None))

    def click(self, object_id: str) -> None:
        self._input.append((f"click:{object_id}", None))

    def _deliver_input(self) -> None:
        while self._input:
            event, payload = self._input.popleft()
            kind, _, code = event.partition(":")
            if kind == "keydown":
                self.keys_down.add(code)
            elif kind == "keyup":
                self.keys_down.discard(code)
            self.emit(event, payload)

    # Frame loop

    def step(self, dt: float) -> None:
        dt = dt if isinstance(dt, (int, float)) and math.isfinite(dt) else 0.0
        dt = max(0.0, min(float(dt), self.config.max_frame_dt))
        self.scheduler.advance_clock(dt)

        self._deliver_input()
        step_physics(self.objects, self.gravity, self.config.floor_y, dt)
        for event, other in self.collisions.detect(list(self.objects)):
            self.emit(event, other)
        self.animations.advance(dt)
        self.scene.advance(dt)
        self.scheduler.resume_due()
        for timer in self.scheduler.due_timers():
            self.emit(timer.event, None)
        self.hud.advance(dt)
        self.emit("update", dt)

    def run(self, max_frames: Optional[int] = None) -> int:
        """Drive the frame loop; return the number of frames run.

        Stops at ``max_frames`` (or ``config.max_frames``), or once scripts are
        stopped and no task is left waiting.
        """
        limit = max_frames if max_frames is not None else self.config.max_frames
        if self.state == RuntimeState.LOADING:
            self.start()
        frames = 0
        last = time.monotonic()
        try:
            while limit is None or frames < limit:
                if self.state == RuntimeState.STOPPED and not self.scheduler.has_tasks():
                    break
                if self.config.realtime:
                    now = time.monotonic()
                    dt, last = now - last, now
                else:
                    dt = self.config.fixed_timestep
                self.step(dt)
                frames += 1
                if self.config.realtime:
                    time.sleep(max(0.0, self.config.fixed_timestep - (time.monotonic() - last)))
        except KeyboardInterrupt:
            logger.info("Interrupted after %d frames.", frames)
        return frames

    @property
    def elapsed(self) -> float:
        return self.scheduler.time

    @property
    def frame(self) -> int:
        return self.scheduler.frame

    # Faults and storage

    def _record_fault(self, fault: RuntimeFault) -> None:
        self.faults.append(fault)

    def _load_storage(self) -> Dict[str, Any]:
        path = self.config.storage_path
        if not path or not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            logger.exception("Could not read storage file %s.", path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save_storage(self) -> None:
        path = self.config.storage_path
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(self.storage, handle, indent=2, sort_keys=True, default=str)
        except OSError:
            logger.exception("Could not write storage file %s.", path)
