from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from uiwire._internal.codegen.analyzer import ProjectAnalyzer
from uiwire._internal.codegen.generator import ContainerGenerator
from uiwire._internal.settings import GeneratorSettings
from uiwire.exceptions import UIWireError

_DESCRIPTION = "Generate the uiwire container module of a project."

logger = logging.getLogger(__name__)


def should_regenerate(path: Path | str, settings: GeneratorSettings) -> bool:
    """Return whether a change to ``path`` affects the generated container.

    Intended as the filter of a file watcher: a path qualifies when it matches
    an include pattern, matches no exclude pattern, and is not the generated
    module itself.
    """
    analyzer = ProjectAnalyzer(
        includes=settings.includes,
        excludes=settings.excludes,
        project_root=settings.project_root,
        output_path=settings.resolved_output_path(),
    )
    return analyzer.selects(path)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = GeneratorSettings(**_settings_overrides(args))
    except ValidationError as error:
        sys.stderr.write(f"Invalid settings:\n{error}\n")
        return 1

    logger.debug("Resolved generator settings: %s", settings)
    generator = ContainerGenerator.from_settings(settings)
    try:
        if args.command == "check":
            return _check(generator)
        result = asyncio.run(generator.generate())
    except (UIWireError, OSError) as error:
        sys.stderr.write(f"uiwire: {error}\n")
        return 1

    status = "updated" if result.changed else "unchanged"
    sys.stdout.write(f"{result.output_path}: {result.export_count} registrations ({status})\n")
    return 0


def _check(generator: ContainerGenerator) -> int:
    expected = asyncio.run(generator.render())
    try:
        current = generator.output_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        current = None

    if current != expected:
        msg = f"{generator.output_path} is out of sync. Run: uiwire generate\n"
        sys.stderr.write(msg)
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="uiwire", description=_DESCRIPTION)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Write the container module.")
    check = subparsers.add_parser(
        "check",
        help="Exit non-zero when the container module is not up-to-date.",
    )
    for subparser in (generate, check):
        subparser.add_argument(
            "--include",
            action="append",
            dest="includes",
            metavar="PATTERN",
            help="Glob pattern selecting scanned files. Repeatable.",
        )
        subparser.add_argument(
            "--exclude",
            action="append",
            dest="excludes",
            metavar="PATTERN",
            help="Glob pattern removing files from the selection. Repeatable.",
        )
        subparser.add_argument("--output", dest="output_path", type=Path, help="Generated module path.")
        subparser.add_argument("--project-root", type=Path, help="Directory anchoring relative paths.")
        subparser.add_argument("--runtime-module", help="Module the generated code imports uiwire from.")
        subparser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    names = ("includes", "excludes", "output_path", "project_root", "runtime_module")
    return {name: getattr(args, name) for name in names if getattr(args, name) is not None}


if __name__ == "__main__":
    raise SystemExit(main())
