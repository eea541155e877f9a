"""Public compiler entry points.

Lowering tables and helpers are intentionally not re-exported from this module.
Use :class:`blockforge.compiler.core.ScriptCompiler` as the stable API.
"""

from blockforge.compiler.core import CompileResult, ScriptCompiler
from blockforge.compiler.program import build_program

__all__ = ["CompileResult", "ScriptCompiler", "build_program"]
