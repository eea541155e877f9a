#!/usr/bin/env python3
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from blockforge.errors import BlockForgeError
from blockforge.exporter import (
    build_project,
    export_project,
    import_project,
    import_project_interactive,
    load_project,
    save_project,
    write_bundle,
)
from blockforge.project import ProjectSpec
from blockforge.runtime import load_program

logger = logging.getLogger("blockforge.build_game")

DEFAULT_BUILD_DIR = Path("build") / "game"


def _terminal_prompt(manifest: Dict[str, Any], error: Optional[str]) -> Optional[str]:
    if error:
        print(error, file=sys.stderr)
    name = manifest.get("name", "project")
    try:
        password = getpass.getpass(f"Password for '{name}' (empty to cancel): ")
    except (EOFError, KeyboardInterrupt):
        return None
    return password or None


def cmd_build(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    out_dir = write_bundle(project, args.output, strict=args.strict)
    print(f"Generated BlockForge game: {out_dir}")
    print(f"- {out_dir / 'main.py'}")
    print(f"- {out_dir / 'blockforge_runtime'}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    password = args.password
    if args.ask_password:
        password = getpass.getpass("Archive password: ") or None
    path = export_project(
        project,
        args.output,
        password=password,
        password_hint=args.hint,
        strict=args.strict,
    )
    print(f"Exported archive: {path}")
    return 0


def _run_settings(project: ProjectSpec, args: argparse.Namespace) -> None:
    if args.headless:
        project.settings["realtime"] = False
    if args.seed is not None:
        project.settings["seed"] = args.seed


def cmd_run(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    _run_settings(project, args)
    build = build_project(project, strict=args.strict)
    runtime = load_program(build.program, filename=str(args.project))
    try:
        frames = runtime.run(args.frames)
    finally:
        runtime.close()
    for line in runtime.output:
        print(line)
    for fault in runtime.faults:
        logger.warning("%s", fault)
    print(f"Ran {frames} frames ({runtime.elapsed:.2f}s simulated).")
    return 1 if runtime.faults and args.fail_on_fault else 0


def cmd_import(args: argparse.Namespace) -> int:
    if args.password is not None:
        project: Optional[ProjectSpec] = import_project(args.archive, args.password)
    else:
        project = import_project_interactive(args.archive, _terminal_prompt)
    if project is None:
        print("Import cancelled.")
        return 1
    path = save_project(project, args.output)
    print(f"Imported project '{project.meta.name}': {path}")
    return 0


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Build, run and package BlockForge projects saved as project JSON "
            "(objects, block scripts, custom files and assets)."
        )
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Compile a project into a runnable game directory.")
    build.add_argument("project", help="Path to the project JSON file.")
    build.add_argument(
        "--output",
        default=str(DEFAULT_BUILD_DIR),
        help="Directory where main.py and the bundled runtime are written.",
    )
    build.set_defaults(func=cmd_build)

    export = sub.add_parser("export", help="Package a project as a game archive.")
    export.add_argument("project", help="Path to the project JSON file.")
    export.add_argument("output", help="Path of the archive to write.")
    export.add_argument("--password", default=None, help="Encrypt the project data.")
    export.add_argument(
        "--ask-password",
        action="store_true",
        help="Prompt for the encryption password instead of passing it on the command line.",
    )
    export.add_argument("--hint", default="", help="Password hint stored in the archive.")
    export.set_defaults(func=cmd_export)

    run = sub.add_parser("run", help="Compile a project and run it without a window.")
    run.add_argument("project", help="Path to the project JSON file.")
    run.add_argument("--frames", type=int, default=600, help="Number of frames to run.")
    run.add_argument(
        "--headless",
        action="store_true",
        help="Use the fixed timestep instead of wall-clock time.",
    )
    run.add_argument("--seed", type=int, default=None, help="Seed for random blocks.")
    run.add_argument(
        "--fail-on-fault",
        action="store_true",
        help="Exit with status 1 if any script raised.",
    )
    run.set_defaults(func=cmd_run)

    imp = sub.add_parser("import", help="Read a game archive back into project JSON.")
    imp.add_argument("archive", help="Path to the game archive.")
    imp.add_argument("output", help="Path of the project JSON file to write.")
    imp.add_argument("--password", default=None, help="Password of an encrypted archive.")
    imp.set_defaults(func=cmd_import)

    for command in (build, export, run):
        command.add_argument(
            "--strict",
            action="store_true",
            help="Fail on the first object whose scripts do not compile.",
        )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except BlockForgeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
