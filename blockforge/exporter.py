import json
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from blockforge.block_registry import BlockRegistry
from blockforge.compiler import ScriptCompiler, build_program
from blockforge.compiler.program import DEFAULT_RUNTIME_MODULE
from blockforge.crypto import ENCRYPTION_INFO, PBKDF2_ITERATIONS, decrypt_text, encrypt_text
from blockforge.errors import (
    AuthoringError,
    CompileError,
    PasswordRequiredError,
    ProjectImportError,
    WrongPasswordError,
)
from blockforge.graph import ScriptGraph
from blockforge.project import FORMAT_VERSION, ProjectSpec

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MANIFEST_FILE = "manifest.json"
PLAIN_DATA_FILE = "project.json"
ENCRYPTED_DATA_FILE = "project.enc"
ENCRYPTION_FILE = "encryption.json"
GAME_DIR = "game"
ASSETS_DIR = "assets"
# Name of the runtime package copied next to the exported program.
BUNDLED_RUNTIME_MODULE = "blockforge_runtime"
RUNTIME_SOURCE_DIR = Path(__file__).resolve().parent / "runtime"

# prompt(manifest, error) -> password, or None to cancel.
PasswordPrompt = Callable[[Dict[str, Any], Optional[str]], Optional[str]]


@dataclass
class BuildResult:
    program: str
    errors: Dict[str, CompileError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def _ordered_graphs(project: ProjectSpec) -> Dict[str, ScriptGraph]:
    graphs: Dict[str, ScriptGraph] = {}
    for spec in project.objects:
        if spec.id in project.scripts:
            graphs[spec.id] = project.scripts.graph(spec.id)
    for object_id in project.scripts.object_ids():
        graphs.setdefault(object_id, project.scripts.graph(object_id))
    return graphs


def build_project(
    project: ProjectSpec,
    *,
    registry: Optional[BlockRegistry] = None,
    runtime_module: str = DEFAULT_RUNTIME_MODULE,
    strict: bool = False,
) -> BuildResult:
    """Compile every object's scripts and assemble the program text.

    Objects whose scripts fail to compile are left without handlers and their
    errors are reported in the result; with ``strict`` the first one is raised.
    """
    result = ScriptCompiler(registry).compile_all(_ordered_graphs(project))
    for object_id, error in result.errors.items():
        logger.error("Scripts of object '%s' were not compiled: %s", object_id, error)
    if strict and result.errors:
        raise next(iter(result.errors.values()))

    program = build_program(
        [spec.to_dict() for spec in project.objects],
        result.modules.values(),
        [{"name": name, "content": content} for name, content in project.custom_files.items()],
        settings=project.settings,
        runtime_module=runtime_module,
    )
    return BuildResult(program=program, errors=dict(result.errors))


def _runtime_sources() -> Dict[str, str]:
    return {
        path.name: path.read_text(encoding="utf-8")
        for path in sorted(RUNTIME_SOURCE_DIR.glob("*.py"))
    }


def write_bundle(project: ProjectSpec, output_dir: PathLike, *, strict: bool = False) -> Path:
    """Write a runnable game directory: ``main.py`` plus a copy of the runtime."""
    out_dir = Path(output_dir)
    runtime_dir = out_dir / BUNDLED_RUNTIME_MODULE
    runtime_dir.mkdir(parents=True, exist_ok=True)

    build = build_project(project, runtime_module=BUNDLED_RUNTIME_MODULE, strict=strict)
    (out_dir / "main.py").write_text(build.program, encoding="utf-8")
    for name, source in _runtime_sources().items():
        (runtime_dir / name).write_text(source, encoding="utf-8")
    return out_dir


def manifest_for(project: ProjectSpec, *, encrypted: bool) -> Dict[str, Any]:
    manifest = project.meta.to_dict()
    manifest["formatVersion"] = FORMAT_VERSION
    manifest["encrypted"] = encrypted
    return manifest


def export_project(
    project: ProjectSpec,
    output_path: PathLike,
    *,
    password: Optional[str] = None,
    password_hint: str = "",
    strict: bool = False,
) -> Path:
    """Write ``project`` as a game archive.

    The playable program is never encrypted; with a password only the editor
    data needed to re-import the project is.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    encrypted = bool(password)
    build = build_project(project, runtime_module=BUNDLED_RUNTIME_MODULE, strict=strict)
    studio_data = json.dumps(project.to_dict(), sort_keys=True)

    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_FILE, _dump_json(manifest_for(project, encrypted=encrypted)))
        archive.writestr(f"{GAME_DIR}/main.py", build.program)
        for name, source in _runtime_sources().items():
            archive.writestr(f"{GAME_DIR}/{BUNDLED_RUNTIME_MODULE}/{name}", source)

        if encrypted:
            archive.writestr(ENCRYPTED_DATA_FILE, encrypt_text(studio_data, password))
            archive.writestr(ENCRYPTION_FILE, _dump_json({**ENCRYPTION_INFO, "hint": password_hint}))
        else:
            archive.writestr(PLAIN_DATA_FILE, studio_data)

        for asset in project.assets:
            archive.writestr(f"{ASSETS_DIR}/{asset.name}", asset.data)

    logger.info(
        "Exported '%s' to %s%s", project.meta.name, path, " (encrypted)" if encrypted else ""
    )
    return path


def _open_archive(path: PathLike) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(path, "r")
    except (OSError, zipfile.BadZipFile) as exc:
        raise ProjectImportError(f"Not a valid game archive: {path}") from exc


def _read_json(archive: zipfile.ZipFile, name: str) -> Any:
    try:
        return json.loads(archive.read(name).decode("utf-8"))
    except KeyError as exc:
        raise ProjectImportError(f"Archive is missing {name}.") from exc
    except (UnicodeDecodeError, ValueError) as exc:
        raise ProjectImportError(f"{name} is corrupted: {exc}") from exc


def read_manifest(path: PathLike) -> Dict[str, Any]:
    with _open_archive(path) as archive:
        return _read_json(archive, MANIFEST_FILE)


def _is_encrypted(archive: zipfile.ZipFile) -> bool:
    names = set(archive.namelist())
    return ENCRYPTED_DATA_FILE in names and ENCRYPTION_FILE in names


def _parse_project(studio_data: str, registry: Optional[BlockRegistry]) -> ProjectSpec:
    try:
        data = json.loads(studio_data)
    except ValueError as exc:
        raise ProjectImportError(f"Project data is corrupted: {exc}") from exc
    try:
        return ProjectSpec.from_dict(data, registry=registry)
    except AuthoringError as exc:
        raise ProjectImportError(f"Project scripts are malformed: {exc}") from exc


def _key_iterations(info: Any) -> int:
    if not isinstance(info, dict):
        raise ProjectImportError(f"{ENCRYPTION_FILE} is corrupted: expected a JSON object.")
    iterations = info.get("iterations", PBKDF2_ITERATIONS)
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations <= 0:
        raise ProjectImportError(
            f"{ENCRYPTION_FILE} is corrupted: invalid iteration count {iterations!r}."
        )
    return iterations


def import_project(
    path: PathLike,
    password: Optional[str] = None,
    *,
    registry: Optional[BlockRegistry] = None,
) -> ProjectSpec:
    """Read a game archive back into a project.

    Raises :class:`PasswordRequiredError` when the archive is encrypted and no
    password was given, and :class:`WrongPasswordError` when decryption fails.
    """
    with _open_archive(path) as archive:
        _read_json(archive, MANIFEST_FILE)
        if _is_encrypted(archive):
            if not password:
                raise PasswordRequiredError("This project is password-protected.")
            info = _read_json(archive, ENCRYPTION_FILE)
            iterations = _key_iterations(info)
            payload = archive.read(ENCRYPTED_DATA_FILE).decode("ascii", errors="replace")
            studio_data = decrypt_text(payload, password, iterations)
        else:
            try:
                studio_data = archive.read(PLAIN_DATA_FILE).decode("utf-8")
            except KeyError as exc:
                raise ProjectImportError(
                    "This archive has no project data; only exported projects can be imported."
                ) from exc
    return _parse_project(studio_data, registry)


def import_project_interactive(
    path: PathLike,
    prompt: PasswordPrompt,
    *,
    registry: Optional[BlockRegistry] = None,
) -> Optional[ProjectSpec]:
    """Import an archive, asking ``prompt`` for a password until one works.

    Returns None when the prompt cancels by returning None.
    """
    manifest = read_manifest(path)
    if not manifest.get("encrypted"):
        return import_project(path, registry=registry)

    error: Optional[str] = None
    while True:
        password = prompt(manifest, error)
        if password is None:
            logger.info("Import of %s cancelled.", path)
            return None
        try:
            return import_project(path, password, registry=registry)
        except PasswordRequiredError:
            error = "Please enter a password."
        except WrongPasswordError:
            error = "The password you entered is incorrect. Please try again."


def save_project(project: ProjectSpec, path: PathLike) -> Path:
    """Write the editor payload as a JSON file."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(_dump_json(project.to_dict()), encoding="utf-8")
    return out


def load_project(path: PathLike, *, registry: Optional[BlockRegistry] = None) -> ProjectSpec:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ProjectImportError(f"Cannot read project file {path}: {exc}") from exc
    return _parse_project(text, registry)


__all__: List[str] = [
    "BuildResult",
    "build_project",
    "export_project",
    "import_project",
    "import_project_interactive",
    "load_project",
    "read_manifest",
    "save_project",
    "write_bundle",
]
