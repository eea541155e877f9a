import logging
import runpy
from typing import Any, Dict, Mapping, Optional

from .runtime import GameRuntime

logger = logging.getLogger(__name__)

PROGRAM_FILENAME = "<blockforge program>"
PROGRAM_RUN_NAME = "blockforge_program"


def load_program(source: str, *, filename: str = PROGRAM_FILENAME) -> GameRuntime:
    """Execute program text and return the runtime it created.

    The program registers its handlers and calls ``rt.start()``; the frame loop
    is left to the caller.
    """
    namespace: Dict[str, Any] = {"__name__": PROGRAM_RUN_NAME}
    code = compile(source, filename, "exec")
    exec(code, namespace)
    return _runtime_from(namespace)


def load_program_file(path: str) -> GameRuntime:
    """Run a generated ``main.py`` without entering its frame loop."""
    namespace = runpy.run_path(str(path), run_name=PROGRAM_RUN_NAME)
    return _runtime_from(namespace)


def _runtime_from(namespace: Mapping[str, Any]) -> GameRuntime:
    runtime: Optional[Any] = namespace.get("rt")
    if not isinstance(runtime, GameRuntime):
        raise ValueError("Program did not create a GameRuntime named 'rt'.")
    logger.debug("Loaded program with %d objects.", len(runtime.objects))
    return runtime
