from __future__ import annotations

import ast
import json
import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from jinja2 import Environment, StrictUndefined, Template

from uiwire._internal.codegen.analyzer import ExportRecord, FileExports
from uiwire._internal.codegen.templates import (
    CONTAINER_TEMPLATE,
    DEPENDENCIES_TEMPLATE,
    IMPORTS_TEMPLATE,
    INITIALIZER_TEMPLATE,
    MODULE_TEMPLATE,
)
from uiwire._internal.items import ItemKind
from uiwire.exceptions import UIWireCodegenError

_GENERATOR_SOURCE = "uiwire._internal.codegen.renderer.ContainerModuleRenderer.render"
_RUNTIME_NAMES = (
    "Container",
    "ExtractedContainerItem",
    "container_initializer_factory",
    "initialize_modules",
    "register_component_factory",
    "register_config_factory",
    "register_function_factory",
    "register_hook_factory",
)
_ITEM_CLASS_BY_KIND = {
    ItemKind.CONFIG: "ConfigItem",
    ItemKind.COMPONENT: "ComponentItem",
    ItemKind.FUNCTION: "FunctionItem",
    ItemKind.HOOK: "FunctionItem",
}
_PARENT_DIRECTORY = ".."
_PACKAGE_MODULE = "__init__"
_MODULE_NAME_PATTERN = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")
_BLANK_LINES_PATTERN = re.compile(r"\n{4,}")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModuleReference:
    """Relative import location of a scanned file seen from the generated module."""

    level: int
    """Number of leading dots."""
    parts: tuple[str, ...]
    """Dotted module path below the anchor package."""

    @property
    def module(self) -> str:
        """Relative module name, for example ``.hooks.use_age_control``."""
        return "." * self.level + ".".join(self.parts)

    @property
    def parent(self) -> str:
        """Relative name of the package containing the module."""
        return "." * self.level + ".".join(self.parts[:-1])


class ContainerModuleRenderer:
    """Renderer for generated container modules."""

    def __init__(self) -> None:
        self._env = Environment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._module_template = self._template(MODULE_TEMPLATE)
        self._imports_template = self._template(IMPORTS_TEMPLATE)
        self._dependencies_template = self._template(DEPENDENCIES_TEMPLATE)
        self._container_template = self._template(CONTAINER_TEMPLATE)
        self._initializer_template = self._template(INITIALIZER_TEMPLATE)

    def render(
        self,
        *,
        runtime_module: str,
        output_path: Path,
        file_exports: Sequence[FileExports],
    ) -> str:
        """Render the container module for the analyzed files.

        Files without exports are left out of the imports and of the
        bulk initializer.

        Args:
            runtime_module: Module providing the uiwire runtime primitives.
            output_path: Path of the generated module; imports are relative to
                its directory.
            file_exports: Analyzer output, in discovery order.

        Raises:
            UIWireCodegenError: If ``runtime_module`` is not a module name, a
                contributing file is not importable as a module, or the rendered
                source is not valid Python.

        """
        if not _MODULE_NAME_PATTERN.match(runtime_module):
            msg = f"Runtime module name {runtime_module!r} is not a dotted module name."
            raise UIWireCodegenError(msg)

        base_dir = output_path.resolve().parent
        contributing = [entry for entry in file_exports if entry.exports]
        references = {
            entry.path: self._module_reference(path=entry.path, base_dir=base_dir)
            for entry in contributing
        }
        logger.info(
            "Container codegen: scanned_files=%d contributing_files=%d exports=%d",
            len(file_exports),
            len(contributing),
            sum(len(entry.exports) for entry in contributing),
        )

        entries = self._dependency_entries(contributing)
        source = self._module_template.render(
            module_docstring_block=self._render_module_docstring(
                registered_count=len(entries),
                contributing_count=len(contributing),
            ),
            imports_block=self._render_imports(
                runtime_module=runtime_module,
                contributing=contributing,
                references=references,
            ),
            dependencies_block=self._dependencies_template.render(
                entries=[
                    (_string_literal(key), _string_literal(annotation))
                    for key, annotation in entries.items()
                ],
            ).strip(),
            container_block=self._container_template.render().strip(),
            initializer_block=self._initializer_template.render(
                modules=[_string_literal(references[entry.path].module) for entry in contributing],
            ).strip(),
        )
        return canonicalize_source(source)

    def _render_module_docstring(self, *, registered_count: int, contributing_count: int) -> str:
        lines = [
            "Generated uiwire container module.",
            "",
            f"Generated by: {_GENERATOR_SOURCE}",
            f"uiwire version used for generation: {self._resolve_uiwire_version()}",
            "",
            "Do not edit by hand: run ``uiwire generate`` to refresh it.",
            "",
            "Generation summary:",
            f"- registered dependencies: {registered_count}",
            f"- contributing modules: {contributing_count}",
        ]
        return "\n".join(['"""', *[self._escape_docstring_line(line) for line in lines], '"""'])

    def _render_imports(
        self,
        *,
        runtime_module: str,
        contributing: Sequence[FileExports],
        references: dict[Path, ModuleReference],
    ) -> str:
        runtime_names = set(_RUNTIME_NAMES)
        type_imports: list[str] = []
        for entry in contributing:
            reference = references[entry.path]
            module_exports = entry.module_exports
            if module_exports:
                runtime_names.update(_ITEM_CLASS_BY_KIND[export.kind] for export in module_exports)
                if reference.parts:
                    type_imports.append(
                        f"from {reference.parent} import {reference.parts[-1]} "
                        f"as {module_exports[0].alias}",
                    )
            named_exports = entry.named_exports
            if named_exports:
                aliases = ", ".join(f"{export.name} as {export.alias}" for export in named_exports)
                type_imports.append(f"from {reference.module} import {aliases}")

        return self._imports_template.render(
            runtime_module=runtime_module,
            runtime_names=sorted(runtime_names),
            type_imports=type_imports,
        ).strip()

    def _dependency_entries(self, contributing: Sequence[FileExports]) -> dict[str, str]:
        entries: dict[str, str] = {}
        for entry in contributing:
            for export in entry.exports:
                if export.dependency_name in entries:
                    logger.warning(
                        "Dependency %r is registered more than once; keeping the registration in %s",
                        export.dependency_name,
                        export.path,
                    )
                    del entries[export.dependency_name]
                entries[export.dependency_name] = self._dependency_annotation(export)
        return entries

    def _dependency_annotation(self, export: ExportRecord) -> str:
        if export.is_module_export:
            return f"ExtractedContainerItem[{_ITEM_CLASS_BY_KIND[export.kind]}]"
        return f"ExtractedContainerItem[{export.alias}]"

    def _module_reference(self, *, path: Path, base_dir: Path) -> ModuleReference:
        relative_parts = Path(os.path.relpath(path.with_suffix(""), base_dir)).parts
        parents = 0
        while parents < len(relative_parts) and relative_parts[parents] == _PARENT_DIRECTORY:
            parents += 1
        parts = relative_parts[parents:]
        if parts and parts[-1] == _PACKAGE_MODULE:
            parts = parts[:-1]

        invalid = [part for part in parts if not part.isidentifier()]
        if invalid:
            msg = f"Cannot import {path} from the generated module: {invalid!r} is not a module name."
            raise UIWireCodegenError(msg)
        return ModuleReference(level=parents + 1, parts=tuple(parts))

    def _resolve_uiwire_version(self) -> str:
        try:
            return version("uiwire")
        except PackageNotFoundError:
            return "unknown"

    def _escape_docstring_line(self, line: str) -> str:
        return line.replace("\\", "\\\\").replace('"""', r"\"\"\"")

    def _template(self, source: str) -> Template:
        return self._env.from_string(source)


def canonicalize_source(source: str) -> str:
    """Normalize generated source so equal inputs produce byte-identical files.

    Trailing whitespace is stripped, runs of blank lines are collapsed to two,
    and the result ends with exactly one newline.

    Raises:
        UIWireCodegenError: If ``source`` is not valid Python.

    """
    try:
        ast.parse(source)
    except SyntaxError as error:
        msg = f"Generated container module is not valid Python: {error}"
        raise UIWireCodegenError(msg) from error

    lines = [line.rstrip() for line in source.splitlines()]
    normalized = _BLANK_LINES_PATTERN.sub("\n\n\n", "\n".join(lines))
    return normalized.strip("\n") + "\n"


def _string_literal(value: str) -> str:
    return json.dumps(value)
