"""
Cooperative scheduler for suspended script handlers.

A handler that contains a suspension point is a Python generator. Each value it
yields says when it wants to be resumed:

    yield rt.wait(0.5)        # after half a second of game time
    yield rt.wait_frames(2)   # at the second frame boundary from now
    yield rt.glide_to(...)    # when the animation completes

Tasks are only ever resumed from ``resume_due`` (once per frame) or when they
are first started, so handlers never interleave mid-statement.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, List, Optional

from .faults import RuntimeFault

logger = logging.getLogger(__name__)

# Tolerance for comparing accumulated frame time against wake-up times.
TIME_EPSILON = 1e-9


class Suspension:
    pass


@dataclass(frozen=True)
class WaitSeconds(Suspension):
    seconds: float


@dataclass(frozen=True)
class WaitFrames(Suspension):
    frames: int


@dataclass(frozen=True)
class WaitUntil(Suspension):
    predicate: Callable[[], bool]


@dataclass
class Task:
    generator: Generator
    name: str
    owner_id: Optional[str] = None
    wake_time: Optional[float] = None
    wake_frame: Optional[int] = None
    until: Optional[Callable[[], bool]] = None
    done: bool = False


@dataclass
class Timer:
    event: str
    interval: float
    next_fire: float
    owner_id: Optional[str] = None
    active: bool = True


FaultSink = Callable[[RuntimeFault], None]


class Scheduler:
    def __init__(self, on_fault: Optional[FaultSink] = None):
        self.time = 0.0
        self.frame = 0
        self.tasks: List[Task] = []
        self.timers: List[Timer] = []
        self._on_fault = on_fault

    def advance_clock(self, dt: float) -> None:
        self.time += dt
        self.frame += 1

    def has_tasks(self) -> bool:
        return any(not task.done for task in self.tasks)

    # Tasks

    def start_task(self, generator: Generator, name: str, owner_id: Optional[str] = None) -> Task:
        """Run a new task up to its first suspension point."""
        if not inspect.isgenerator(generator):
            raise TypeError(f"Task '{name}' must be a generator.")
        task = Task(generator=generator, name=name, owner_id=owner_id)
        self._advance(task)
        if not task.done:
            self.tasks.append(task)
        return task

    def resume_due(self) -> int:
        resumed = 0
        for task in list(self.tasks):
            if task.done or not self._is_due(task):
                continue
            resumed += 1
            self._advance(task)
        self.tasks = [task for task in self.tasks if not task.done]
        return resumed

    def _is_due(self, task: Task) -> bool:
        if task.wake_time is not None:
            return self.time + TIME_EPSILON >= task.wake_time
        if task.wake_frame is not None:
            return self.frame >= task.wake_frame
        if task.until is not None:
            return bool(task.until())
        return True

    def _advance(self, task: Task) -> None:
        task.wake_time = task.wake_frame = task.until = None
        try:
            suspension = next(task.generator)
        except StopIteration:
            task.done = True
            return
        except Exception as exc:
            task.done = True
            logger.exception("Task '%s' failed.", task.name)
            self._report(RuntimeFault(task.name, exc, owner_id=task.owner_id))
            return
        self._arm(task, suspension)

    def _arm(self, task: Task, suspension: Any) -> None:
        if isinstance(suspension, WaitSeconds):
            task.wake_time = self.time + max(0.0, suspension.seconds)
        elif isinstance(suspension, WaitFrames):
            task.wake_frame = self.frame + max(1, suspension.frames)
        elif isinstance(suspension, WaitUntil):
            task.until = suspension.predicate
        else:
            # A bare ``yield`` waits for the next frame.
            if suspension is not None:
                logger.warning(
                    "Task '%s' yielded %r; resuming on the next frame.", task.name, suspension
                )
            task.wake_frame = self.frame + 1

    # Timers

    def add_timer(self, event: str, interval: float, owner_id: Optional[str] = None) -> Timer:
        timer = Timer(
            event=event,
            interval=interval,
            next_fire=self.time + interval,
            owner_id=owner_id,
        )
        self.timers.append(timer)
        return timer

    def due_timers(self) -> List[Timer]:
        """Return timers firing this frame and schedule their next run.

        A timer fires at most once per frame; if the frame was longer than its
        interval the schedule restarts from the current time.
        """
        due = []
        for timer in self.timers:
            if not timer.active or self.time + TIME_EPSILON < timer.next_fire:
                continue
            due.append(timer)
            timer.next_fire += timer.interval
            if timer.next_fire + TIME_EPSILON <= self.time:
                timer.next_fire = self.time + timer.interval
        return due

    def remove_timers(self, owner_id: str) -> None:
        for timer in self.timers:
            if timer.owner_id == owner_id:
                timer.active = False
        self.timers = [timer for timer in self.timers if timer.active]

    def close(self) -> None:
        for task in self.tasks:
            task.done = True
            task.generator.close()
        self.tasks = []
        self.timers = []

    def _report(self, fault: RuntimeFault) -> None:
        if self._on_fault is not None:
            self._on_fault(fault)
