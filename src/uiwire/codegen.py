from uiwire._internal.cli import should_regenerate
from uiwire._internal.codegen.analyzer import ExportRecord, FileExports, ProjectAnalyzer
from uiwire._internal.codegen.generator import ContainerGenerator, GenerationResult
from uiwire._internal.codegen.renderer import ContainerModuleRenderer, canonicalize_source
from uiwire._internal.settings import GeneratorSettings

__all__ = [
    "ContainerGenerator",
    "ContainerModuleRenderer",
    "ExportRecord",
    "FileExports",
    "GenerationResult",
    "GeneratorSettings",
    "ProjectAnalyzer",
    "canonicalize_source",
    "should_regenerate",
]
