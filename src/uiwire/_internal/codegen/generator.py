from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from uiwire._internal.codegen.analyzer import FileExports, ProjectAnalyzer
from uiwire._internal.codegen.renderer import ContainerModuleRenderer

if TYPE_CHECKING:
    from typing_extensions import Self

    from uiwire._internal.settings import GeneratorSettings

DEFAULT_RUNTIME_MODULE = "uiwire"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of one generation run."""

    output_path: Path
    file_exports: tuple[FileExports, ...]
    changed: bool
    """Whether this run changed the output file on disk."""

    @property
    def scanned_files(self) -> tuple[Path, ...]:
        """Every file selected by the patterns, including files without exports."""
        return tuple(entry.path for entry in self.file_exports)

    @property
    def export_count(self) -> int:
        """Number of eligible exports found."""
        return sum(len(entry.exports) for entry in self.file_exports)


class ContainerGenerator:
    """Generate the container module of a project.

    Generation writes a placeholder module first when the output file does not
    exist yet, because the scanned modules import their registration entry
    points from it. Concurrent runs are not serialized; callers triggering
    generation from file-change events must debounce them.
    """

    def __init__(
        self,
        *,
        includes: Sequence[str],
        output_path: Path | str,
        excludes: Sequence[str] = (),
        project_root: Path | str = ".",
        runtime_module: str = DEFAULT_RUNTIME_MODULE,
    ) -> None:
        """Configure the generator.

        Args:
            includes: Ordered glob patterns selecting the scanned files.
            output_path: Generated module path. Relative paths are anchored at
                ``project_root``.
            excludes: Glob patterns removed from the selection.
            project_root: Directory anchoring relative patterns and paths.
            runtime_module: Module the generated code imports uiwire from.

        Examples:
            .. code-block:: python

                generator = ContainerGenerator(
                    includes=["src/app/**/*.py"],
                    output_path="src/app/container_gen.py",
                )
                result = asyncio.run(generator.generate())

        """
        root = Path(project_root).resolve()
        output = Path(output_path)
        self._output_path = output if output.is_absolute() else root / output
        self._runtime_module = runtime_module
        self._analyzer = ProjectAnalyzer(
            includes=includes,
            excludes=excludes,
            project_root=root,
            output_path=self._output_path,
        )
        self._renderer = ContainerModuleRenderer()

    @classmethod
    def from_settings(cls, settings: GeneratorSettings) -> Self:
        """Build a generator from resolved settings."""
        return cls(
            includes=settings.includes,
            excludes=settings.excludes,
            output_path=settings.output_path,
            project_root=settings.project_root,
            runtime_module=settings.runtime_module,
        )

    @property
    def output_path(self) -> Path:
        """Absolute path of the generated module."""
        return self._output_path

    async def generate(self) -> GenerationResult:
        """Scan the project and write the container module.

        Raises:
            UIWireCodegenError: If the module cannot be rendered.
            OSError: If the output file cannot be written.

        """
        logger.info("Generating uiwire container: %s", self._output_path)
        wrote_placeholder = False
        if not self._output_path.exists():
            logger.debug("Writing placeholder container module before analysis")
            await self._write(self.render_placeholder())
            wrote_placeholder = True

        file_exports = await self._analyzer.analyze()
        content = self._renderer.render(
            runtime_module=self._runtime_module,
            output_path=self._output_path,
            file_exports=file_exports,
        )
        changed = await self._write_if_changed(content)
        result = GenerationResult(
            output_path=self._output_path,
            file_exports=tuple(file_exports),
            changed=changed or wrote_placeholder,
        )
        logger.info(
            "Generated uiwire container %s: %d exports from %d files",
            self._output_path,
            result.export_count,
            len(result.scanned_files),
        )
        return result

    async def render(self) -> str:
        """Scan the project and return the module content without writing it."""
        file_exports = await self._analyzer.analyze()
        return self._renderer.render(
            runtime_module=self._runtime_module,
            output_path=self._output_path,
            file_exports=file_exports,
        )

    def render_placeholder(self) -> str:
        """Return the container module with no registrations."""
        return self._renderer.render(
            runtime_module=self._runtime_module,
            output_path=self._output_path,
            file_exports=(),
        )

    async def _write_if_changed(self, content: str) -> bool:
        current = await asyncio.to_thread(self._read_current)
        if current == content:
            logger.debug("Container module is up to date: %s", self._output_path)
            return False
        await self._write(content)
        return True

    async def _write(self, content: str) -> None:
        await asyncio.to_thread(self._write_sync, content)

    def _read_current(self) -> str | None:
        try:
            return self._output_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_sync(self, content: str) -> None:
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._output_path.write_text(content, encoding="utf-8")
