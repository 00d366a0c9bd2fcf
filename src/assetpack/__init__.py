"""Asset build pipeline for scripts and stylesheets.

Compiles source files, follows their declared dependencies, links the
dependency closure into a single output, and optionally minifies and
postprocesses it.

Public API:
    create_packager: Preferred constructor for AssetPackager.
    AssetPackager: build(), write(), invalidate(), resolve().
    PackagerConfig: Immutable packager configuration.
"""

__version__ = "0.1.0"

from .cache import OnceCache
from .closure import expand_dependencies
from .config import DEFAULTS, PackagerConfig, PackagerPreset, get_preset, merge_config
from .contract import Analyzer, Compiler, Linker, Minifier, PluginContext, Postprocessor
from .errors import AnalyzeError, CompileError, ConfigurationError, PackagerError, ResolutionError
from .models import BuildStage, CompositeAsset, SourceAsset
from .packager import AssetPackager, create_packager, write_all
from .plugins import HeaderPostprocessor, merge_linker, require_analyzer, stylesheet_require_analyzer, text_compiler
from .resolver import resolve_module

__all__ = [
    "AnalyzeError",
    "Analyzer",
    "AssetPackager",
    "BuildStage",
    "CompileError",
    "Compiler",
    "CompositeAsset",
    "ConfigurationError",
    "DEFAULTS",
    "HeaderPostprocessor",
    "Linker",
    "Minifier",
    "OnceCache",
    "PackagerConfig",
    "PackagerError",
    "PackagerPreset",
    "PluginContext",
    "Postprocessor",
    "ResolutionError",
    "SourceAsset",
    "create_packager",
    "expand_dependencies",
    "get_preset",
    "merge_config",
    "merge_linker",
    "require_analyzer",
    "resolve_module",
    "stylesheet_require_analyzer",
    "text_compiler",
    "write_all",
]
