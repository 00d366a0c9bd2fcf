"""Default plugins for the asset packager.

These are the plugins a packager uses when nothing else is configured:

- text_compiler: reads the source file as UTF-8 text
- require_analyzer: Sprockets-style ``//= require <id>`` directives
- stylesheet_require_analyzer: the same directive as ``/*= require <id> */``
- merge_linker: concatenates the dependency closure, one asset per line
- HeaderPostprocessor: prepends a fixed header (e.g. a copyright notice)

No minifier is provided; minification algorithms are left to callers.
"""

import asyncio
import logging
import os
import re
from pathlib import Path

from .closure import expand_dependencies
from .contract import PluginContext
from .errors import AnalyzeError, CompileError, PackagerError
from .models import CompositeAsset, SourceAsset

logger = logging.getLogger(__name__)

SCRIPT_REQUIRE_PATTERN = re.compile(r"^\s*//=\s+require\s+(.+?)\s*$", re.MULTILINE)
STYLESHEET_REQUIRE_PATTERN = re.compile(r"^\s*/\*=\s+require\s+(.+?)\s*\*/\s*$", re.MULTILINE)


async def text_compiler(asset: SourceAsset, context: PluginContext) -> None:
    """Read the file at ``asset.path`` into ``asset.body``.

    Raises:
        CompileError: If the file cannot be read or decoded.
    """
    try:
        asset.body = await asyncio.to_thread(Path(asset.path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CompileError(f"Failed to read {asset.path}: {e}", path=asset.path) from e


def _analyze_directives(pattern: re.Pattern[str], asset: SourceAsset, context: PluginContext) -> None:
    """Resolve every directive match, relative to the asset's directory."""
    module_ids = pattern.findall(asset.body)
    if not module_ids:
        return

    basedir = os.path.dirname(asset.path)
    try:
        asset.dependencies = [context.resolve(module_id, basedir) for module_id in module_ids]
    except PackagerError:
        raise
    except Exception as e:
        raise AnalyzeError(f"Failed to analyze {asset.path}: {e}", path=asset.path) from e

    logger.debug("%s requires %s", asset.path, module_ids)


def require_analyzer(asset: SourceAsset, context: PluginContext) -> None:
    """Collect ``//= require <id>`` directives into ``asset.dependencies``.

    Raises:
        ResolutionError: If a required module does not exist.
        AnalyzeError: If resolution fails for any other reason.
    """
    _analyze_directives(SCRIPT_REQUIRE_PATTERN, asset, context)


def stylesheet_require_analyzer(asset: SourceAsset, context: PluginContext) -> None:
    """Collect ``/*= require <id> */`` directives into ``asset.dependencies``."""
    _analyze_directives(STYLESHEET_REQUIRE_PATTERN, asset, context)


async def merge_linker(asset: CompositeAsset, context: PluginContext) -> None:
    """Join the bodies of the dependency closure with newlines."""
    expanded = await expand_dependencies(context, asset.assets)
    asset.body = "\n".join(source.body for source in expanded)


class HeaderPostprocessor:
    """Prepends a header line to the linked body.

    Args:
        header: Text placed before the body, e.g. "/* (c) 2012 Example */".
    """

    def __init__(self, header: str) -> None:
        self.header = header

    def __call__(self, asset: CompositeAsset, context: PluginContext) -> None:
        asset.body = f"{self.header}\n{asset.body}"

    def __repr__(self) -> str:
        return f"HeaderPostprocessor({self.header!r})"
