from __future__ import annotations

import ast
import asyncio
import fnmatch
import glob
import itertools
import logging
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from uiwire._internal.items import ItemKind

DEFAULT_REGISTRATION_NAMES: Mapping[str, ItemKind] = {
    "register_component": ItemKind.COMPONENT,
    "register_hook": ItemKind.HOOK,
    "register_function": ItemKind.FUNCTION,
    "register_config": ItemKind.CONFIG,
}
"""Callee names recognized as registration calls, with the kind they register."""

_NAME_KEYWORD = "name"
_RECURSIVE_WILDCARD = "**"
_NON_IDENTIFIER_PATTERN = re.compile(r"\W")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveredRegistration:
    """Registration found in one module, before alias assignment."""

    name: str | None
    """Exported symbol bound to the item, or ``None`` for module-level registrations."""
    dependency_name: str
    """Dependency key passed to the registration call."""
    kind: ItemKind
    """Item kind implied by the registration entry point."""


@dataclass(frozen=True, slots=True)
class ExportRecord:
    """Eligible export of a scanned file."""

    path: Path
    """Absolute path of the file."""
    name: str | None
    """Exported symbol, or ``None`` when the item is only registered by importing the module."""
    alias: str
    """Identifier unique across one analysis run."""
    dependency_name: str
    """Dependency key the export registers."""
    kind: ItemKind
    """Item kind implied by the registration entry point."""

    @property
    def is_module_export(self) -> bool:
        """Whether the export is imported as its module rather than by name."""
        return self.name is None


@dataclass(frozen=True, slots=True)
class FileExports:
    """Eligible exports of one scanned file, in declaration order."""

    path: Path
    exports: tuple[ExportRecord, ...]

    @property
    def module_exports(self) -> tuple[ExportRecord, ...]:
        """Exports imported as their module."""
        return tuple(export for export in self.exports if export.is_module_export)

    @property
    def named_exports(self) -> tuple[ExportRecord, ...]:
        """Exports imported by name."""
        return tuple(export for export in self.exports if not export.is_module_export)


class ProjectAnalyzer:
    """Discover registrations of container items in a source tree.

    Files are selected with include/exclude glob patterns and scanned
    syntactically: a module-level statement is eligible when it calls one of
    the registration entry points with a dependency key that resolves to a
    string literal.
    """

    def __init__(
        self,
        *,
        includes: Sequence[str],
        excludes: Sequence[str] = (),
        project_root: Path | str = ".",
        output_path: Path | str | None = None,
        registration_names: Mapping[str, ItemKind] = DEFAULT_REGISTRATION_NAMES,
    ) -> None:
        """Configure the analyzer.

        Args:
            includes: Ordered glob patterns selecting files; ``**`` matches any
                number of directories. Relative patterns are anchored at
                ``project_root``.
            excludes: Glob patterns removing files from the selection.
            project_root: Directory anchoring relative patterns.
            output_path: Generated container module, never scanned.
            registration_names: Callee names recognized as registrations.

        """
        self._includes = tuple(includes)
        self._excludes = tuple(excludes)
        self._project_root = Path(project_root).resolve()
        self._output_path = Path(output_path).resolve() if output_path is not None else None
        self._registration_names = dict(registration_names)

    def expand_files(self) -> list[Path]:
        """Return the absolute, de-duplicated files selected by the patterns.

        Files keep the order of the include patterns; matches of one pattern
        are sorted.
        """
        excluded = set(self._glob(self._excludes))
        if self._output_path is not None:
            excluded.add(self._output_path)

        files: list[Path] = []
        for path in self._glob(self._includes):
            if path in excluded or not path.is_file():
                continue
            files.append(path)
        return files

    def selects(self, path: Path | str) -> bool:
        """Return whether ``path`` would be selected by :meth:`expand_files`.

        The path is matched against the patterns without touching the file
        system, with the semantics of :func:`glob.glob`: ``*`` stays within one
        directory, ``**`` spans any number of directories, and wildcards skip
        hidden names. Relative paths are anchored at ``project_root``.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._project_root / candidate
        candidate = candidate.resolve()
        if candidate == self._output_path:
            return False
        if not any(_glob_matches(self._anchor(pattern), candidate) for pattern in self._includes):
            return False
        return not any(_glob_matches(self._anchor(pattern), candidate) for pattern in self._excludes)

    async def analyze(self) -> list[FileExports]:
        """Scan every selected file and assign export aliases.

        Files are scanned concurrently in worker threads. Aliases are assigned
        afterwards in file order, then declaration order, with one counter per
        call.
        """
        files = self.expand_files()
        logger.debug("Scanning %d files for container registrations", len(files))
        discovered = await asyncio.gather(
            *(asyncio.to_thread(self.scan_file, path) for path in files),
        )

        counter = itertools.count()
        results: list[FileExports] = []
        for path, registrations in zip(files, discovered):
            exports = tuple(
                ExportRecord(
                    path=path,
                    name=registration.name,
                    alias=_build_alias(registration=registration, path=path, index=next(counter)),
                    dependency_name=registration.dependency_name,
                    kind=registration.kind,
                )
                for registration in registrations
            )
            results.append(FileExports(path=path, exports=exports))
        return results

    def scan_file(self, path: Path) -> list[DiscoveredRegistration]:
        """Scan one file; unreadable or unparsable files yield no registrations."""
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            logger.warning("Skipping unreadable file %s: %s", path, error)
            return []
        try:
            return self.scan_source(source, filename=str(path))
        except (SyntaxError, ValueError) as error:
            logger.warning("Skipping unparsable file %s: %s", path, error)
            return []

    def scan_source(self, source: str, *, filename: str = "<unknown>") -> list[DiscoveredRegistration]:
        """Return the module-level registrations of ``source`` in declaration order.

        Raises:
            SyntaxError: If ``source`` is not valid Python.

        """
        module = ast.parse(source, filename=filename)
        string_constants = _collect_string_constants(module)
        exported_names = _collect_exported_names(module)

        registrations: list[DiscoveredRegistration] = []
        for statement in module.body:
            for symbol, call in self._registration_calls(statement):
                found = self._registration_from_call(call, string_constants=string_constants)
                if found is None:
                    continue
                dependency_name, kind = found
                name = symbol if symbol is not None and _is_exported(symbol, exported_names) else None
                registrations.append(
                    DiscoveredRegistration(name=name, dependency_name=dependency_name, kind=kind),
                )
        return registrations

    def _registration_calls(self, statement: ast.stmt) -> Iterable[tuple[str | None, ast.Call]]:
        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            for decorator in statement.decorator_list:
                if isinstance(decorator, ast.Call) and self._callee_kind(decorator) is not None:
                    yield statement.name, decorator
            return

        value: ast.expr | None = None
        symbol: str | None = None
        if isinstance(statement, ast.Assign):
            value = statement.value
            if len(statement.targets) == 1 and isinstance(statement.targets[0], ast.Name):
                symbol = statement.targets[0].id
        elif isinstance(statement, ast.AnnAssign):
            value = statement.value
            if isinstance(statement.target, ast.Name):
                symbol = statement.target.id
        elif isinstance(statement, ast.Expr):
            value = statement.value

        if not isinstance(value, ast.Call):
            return
        if self._callee_kind(value) is not None:
            yield symbol, value
        elif isinstance(value.func, ast.Call) and self._callee_kind(value.func) is not None:
            yield symbol, value.func

    def _registration_from_call(
        self,
        call: ast.Call,
        *,
        string_constants: Mapping[str, str],
    ) -> tuple[str, ItemKind] | None:
        kind = self._callee_kind(call)
        if kind is None:
            return None

        name_node: ast.expr | None = call.args[0] if call.args else None
        if name_node is None:
            name_node = next(
                (keyword_.value for keyword_ in call.keywords if keyword_.arg == _NAME_KEYWORD),
                None,
            )
        dependency_name = _resolve_string(name_node, string_constants=string_constants)
        if dependency_name is None:
            logger.debug(
                "Skipping registration at line %d: dependency key is not a string literal",
                call.lineno,
            )
            return None
        return dependency_name, kind

    def _callee_kind(self, call: ast.Call) -> ItemKind | None:
        func = call.func
        if isinstance(func, ast.Name):
            return self._registration_names.get(func.id)
        if isinstance(func, ast.Attribute):
            return self._registration_names.get(func.attr)
        return None

    def _glob(self, patterns: Iterable[str]) -> Iterable[Path]:
        seen: set[Path] = set()
        for pattern in patterns:
            for match in sorted(glob.glob(self._anchor(pattern), recursive=True)):
                path = Path(match).resolve()
                if path in seen:
                    continue
                seen.add(path)
                yield path

    def _anchor(self, pattern: str) -> str:
        return pattern if os.path.isabs(pattern) else str(self._project_root / pattern)


def _collect_string_constants(module: ast.Module) -> dict[str, str]:
    constants: dict[str, str] = {}
    for statement in module.body:
        if (
            isinstance(statement, ast.Assign)
            and len(statement.targets) == 1
            and isinstance(statement.targets[0], ast.Name)
            and isinstance(statement.value, ast.Constant)
            and isinstance(statement.value.value, str)
        ):
            constants[statement.targets[0].id] = statement.value.value
        elif (
            isinstance(statement, ast.AnnAssign)
            and isinstance(statement.target, ast.Name)
            and isinstance(statement.value, ast.Constant)
            and isinstance(statement.value.value, str)
        ):
            constants[statement.target.id] = statement.value.value
    return constants


def _collect_exported_names(module: ast.Module) -> frozenset[str] | None:
    """Return the literal ``__all__`` of a module, or ``None`` when it has none."""
    for statement in module.body:
        if not (
            isinstance(statement, ast.Assign)
            and any(
                isinstance(target, ast.Name) and target.id == "__all__"
                for target in statement.targets
            )
        ):
            continue
        if not isinstance(statement.value, (ast.List, ast.Tuple)):
            return None
        names = [
            element.value
            for element in statement.value.elts
            if isinstance(element, ast.Constant) and isinstance(element.value, str)
        ]
        return frozenset(names)
    return None


def _is_exported(symbol: str, exported_names: frozenset[str] | None) -> bool:
    if exported_names is not None:
        return symbol in exported_names
    return not symbol.startswith("_")


def _resolve_string(node: ast.expr | None, *, string_constants: Mapping[str, str]) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str) and node.value:
        return node.value
    if isinstance(node, ast.Name):
        return string_constants.get(node.id) or None
    return None


def _build_alias(*, registration: DiscoveredRegistration, path: Path, index: int) -> str:
    if registration.name is not None:
        base = registration.name
    else:
        base = path.parent.name if path.stem == "__init__" else path.stem
    identifier = _NON_IDENTIFIER_PATTERN.sub("_", base)
    if not identifier or identifier[0].isdigit():
        identifier = f"_{identifier}"
    return f"{identifier}_{index}"


def _glob_matches(pattern: str, path: Path) -> bool:
    return _match_parts(Path(pattern).parts, path.parts)


def _match_parts(pattern_parts: Sequence[str], parts: Sequence[str]) -> bool:
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == _RECURSIVE_WILDCARD:
        if _match_parts(rest, parts):
            return True
        return bool(parts) and not _is_hidden(parts[0]) and _match_parts(pattern_parts, parts[1:])
    if not parts:
        return False
    return _match_part(head, parts[0]) and _match_parts(rest, parts[1:])


def _match_part(pattern: str, name: str) -> bool:
    if not glob.has_magic(pattern):
        return pattern == name
    # Wildcards only match hidden names when the pattern itself starts with a dot.
    if _is_hidden(name) and not pattern.startswith("."):
        return False
    return fnmatch.fnmatchcase(name, pattern)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")
