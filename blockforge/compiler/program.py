from typing import Any, Iterable, List, Mapping, Optional, Sequence

from blockforge.py_generator import comment_text

from .constants import RUNTIME_VAR

DEFAULT_RUNTIME_MODULE = "blockforge.runtime"

PROGRAM_HEADER = "# Generated by BlockForge. Edits are overwritten on the next build."


def build_program(
    objects: Sequence[Mapping[str, Any]],
    modules: Iterable[str],
    custom_files: Sequence[Mapping[str, str]] = (),
    *,
    settings: Optional[Mapping[str, Any]] = None,
    runtime_module: str = DEFAULT_RUNTIME_MODULE,
) -> str:
    """Assemble the runnable program text.

    Sections, in order: runtime prelude, object setup, custom files, generated
    object modules, start call.
    """
    parts: List[str] = [_emit_prelude(settings or {}, runtime_module)]

    setup = ["# Object setup"]
    for spec in objects:
        setup.append(f"{RUNTIME_VAR}.add_object({_plain(spec)!r})")
    parts.append("\n".join(setup))

    for custom in custom_files:
        name = comment_text(custom.get("name", "custom"))
        content = (custom.get("content") or "").rstrip()
        parts.append(f"# Custom file: {name}\n{content}" if content else f"# Custom file: {name}")

    for module in modules:
        parts.append(module.rstrip())

    parts.append(
        "# Start\n"
        f"{RUNTIME_VAR}.start()\n"
        "\n"
        'if __name__ == "__main__":\n'
        f"    {RUNTIME_VAR}.run()"
    )
    return "\n\n\n".join(parts) + "\n"


def _emit_prelude(settings: Mapping[str, Any], runtime_module: str) -> str:
    return (
        f"{PROGRAM_HEADER}\n"
        f"from {runtime_module} import GameRuntime, RuntimeConfig\n"
        "\n"
        f"{RUNTIME_VAR} = GameRuntime(RuntimeConfig.from_dict({_plain(settings)!r}))"
    )


def _plain(value: Any) -> Any:
    """Copy a JSON-like value into plain dicts and lists so its repr is Python source."""
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value

