from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from uiwire._internal.codegen.generator import DEFAULT_RUNTIME_MODULE

_MODULE_NAME_PATTERN = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


class GeneratorSettings(BaseSettings):
    """Settings of the container generator.

    Values are read from ``UIWIRE_``-prefixed environment variables; list
    values are JSON encoded, for example
    ``UIWIRE_INCLUDES='["src/app/**/*.py"]'``. Explicit keyword arguments take
    precedence over the environment.

    Examples:
        .. code-block:: python

            settings = GeneratorSettings(output_path=Path("src/app/container_gen.py"))
            generator = ContainerGenerator.from_settings(settings)

    """

    model_config = SettingsConfigDict(env_prefix="UIWIRE_", extra="ignore")

    includes: list[str] = Field(default_factory=lambda: ["src/**/*.py"])
    """Ordered glob patterns selecting the scanned files."""

    excludes: list[str] = Field(default_factory=list)
    """Glob patterns removed from the selection."""

    project_root: Path = Path()
    """Directory anchoring relative patterns and the output path."""

    output_path: Path = Path("src/container_gen.py")
    """Generated container module."""

    runtime_module: str = DEFAULT_RUNTIME_MODULE
    """Module the generated code imports the uiwire runtime from."""

    @field_validator("includes")
    @classmethod
    def validate_includes(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "At least one include pattern is required."
            raise ValueError(msg)
        return value

    @field_validator("runtime_module")
    @classmethod
    def validate_runtime_module(cls, value: str) -> str:
        if not _MODULE_NAME_PATTERN.match(value):
            msg = f"{value!r} is not a dotted module name."
            raise ValueError(msg)
        return value

    def resolved_output_path(self) -> Path:
        """Absolute output path, anchored at ``project_root`` when relative."""
        root = self.project_root.resolve()
        return self.output_path if self.output_path.is_absolute() else root / self.output_path
