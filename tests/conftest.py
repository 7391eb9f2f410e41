"""Shared pytest fixtures for uiwire tests."""

from __future__ import annotations

import importlib
import sys
import textwrap
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from uiwire import Container


@pytest.fixture()
def container() -> Container[Any]:
    """Container with lenient resolution."""
    return Container()


@pytest.fixture()
def strict_container() -> Container[Any]:
    """Container failing on unresolvable dependency keys."""
    return Container(strict_resolution=True)


class ProjectTree:
    """Throwaway project with one importable package under ``src/``."""

    def __init__(self, root: Path, package: str) -> None:
        self.root = root
        self.package = package
        self.package_dir = root / "src" / package
        self.package_dir.mkdir(parents=True)
        (self.package_dir / "__init__.py").write_text("", encoding="utf-8")

    @property
    def output_path(self) -> Path:
        return self.package_dir / "container_gen.py"

    def write(self, relative_path: str, source: str) -> Path:
        """Write a module below the package; missing subpackages get an ``__init__.py``."""
        path = self.package_dir / relative_path
        parent = path.parent
        while parent != self.package_dir:
            parent.mkdir(parents=True, exist_ok=True)
            init_file = parent / "__init__.py"
            if not init_file.exists():
                init_file.write_text("", encoding="utf-8")
            parent = parent.parent
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    def import_module(self, name: str) -> Any:
        importlib.invalidate_caches()
        return importlib.import_module(f"{self.package}.{name}")


@pytest.fixture()
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[ProjectTree]:
    """Project tree importable as ``demo_app`` for the duration of one test."""
    tree = ProjectTree(tmp_path, "demo_app")
    monkeypatch.syspath_prepend(str(tmp_path / "src"))
    yield tree
    for module_name in list(sys.modules):
        if module_name == tree.package or module_name.startswith(f"{tree.package}."):
            del sys.modules[module_name]
