"""Public Python API for BlockForge.

The package exposes the block catalog, the script graph editor model, the
block-to-Python compiler, project packaging and the game runtime that executes
compiled programs (``blockforge.runtime``).
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from blockforge.block_registry import BlockDefinition, BlockRegistry, default_registry
from blockforge.compiler import CompileResult, ScriptCompiler, build_program
from blockforge.errors import (
    AuthoringError,
    BlockForgeError,
    CompileError,
    PasswordRequiredError,
    ProjectImportError,
    WrongPasswordError,
)
from blockforge.exporter import (
    build_project,
    export_project,
    import_project,
    import_project_interactive,
)
from blockforge.graph import ScriptGraph, ScriptGraphStore
from blockforge.project import ObjectSpec, ProjectSpec
from blockforge.py_generator import PyGenerator
from blockforge.runtime import GameRuntime, RuntimeConfig, load_program

try:
    __version__: str = version("blockforge")
except PackageNotFoundError:  # pragma: no cover - editable local fallback
    __version__ = "0.1.0"


def about(*, print_output: bool = True) -> str:
    """Return and optionally print the runtime semantic contract.

    Args:
        print_output: Whether to print the returned summary.

    Returns:
        Human-readable semantic summary string.

    Example:
        >>> from blockforge import about
        >>> text = about(print_output=False)
        >>> "Frame order" in text
        True
    """
    text = (
        f"BlockForge {__version__}\n"
        "Coordinate system: 3D, +y up, floor plane at y = 0.5.\n"
        "Time units: seconds; waits resume at the first frame at or after their deadline.\n"
        "Frame order: input -> physics -> collisions -> animations -> resumed tasks "
        "-> timers -> HUD -> update.\n"
        "Handlers: run in registration order; a failing handler is logged and skipped.\n"
        "Stop all: blocks every event except start; suspended scripts still finish."
    )
    if print_output:
        print(text)
    return text


__all__ = [
    "__version__",
    "about",
    "AuthoringError",
    "BlockDefinition",
    "BlockForgeError",
    "BlockRegistry",
    "CompileError",
    "CompileResult",
    "GameRuntime",
    "ObjectSpec",
    "PasswordRequiredError",
    "ProjectImportError",
    "ProjectSpec",
    "PyGenerator",
    "RuntimeConfig",
    "ScriptCompiler",
    "ScriptGraph",
    "ScriptGraphStore",
    "WrongPasswordError",
    "build_program",
    "build_project",
    "default_registry",
    "export_project",
    "import_project",
    "import_project_interactive",
    "load_program",
]
