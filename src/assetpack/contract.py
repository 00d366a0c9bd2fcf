"""Plugin contract for the asset packager.

Every compiler, analyzer, linker, minifier and postprocessor is a callable
taking ``(asset, context)``. It may be a coroutine function or a plain
function. It signals success by returning and failure by raising; the
return value is ignored because plugins work by filling in fields of the
asset they are given.

The context passed to plugins implements PluginContext. In practice it is
the AssetPackager itself.
"""

import inspect
from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from .models import CompositeAsset, SourceAsset


@runtime_checkable
class PluginContext(Protocol):
    """Services the packager exposes to plugins."""

    def resolve(self, module_id: str, basedir: str | None = None) -> str:
        """Map a module id to an absolute path.

        Only files whose extension has a registered compiler are considered.

        Raises:
            ResolutionError: If no matching file exists.
        """
        ...

    async def get_source_asset(self, path: str) -> SourceAsset:
        """Return the compiled and analyzed asset for a path (memoized)."""
        ...


PluginResult = Union[None, Awaitable[None]]


@runtime_checkable
class Compiler(Protocol):
    """Fills in ``asset.body`` for one source file."""

    def __call__(self, asset: SourceAsset, context: PluginContext) -> PluginResult: ...


@runtime_checkable
class Analyzer(Protocol):
    """Fills in ``asset.dependencies`` from a compiled body."""

    def __call__(self, asset: SourceAsset, context: PluginContext) -> PluginResult: ...


@runtime_checkable
class Linker(Protocol):
    """Merges the dependency closure of ``asset.assets`` into ``asset.body``."""

    def __call__(self, asset: CompositeAsset, context: PluginContext) -> PluginResult: ...


@runtime_checkable
class Minifier(Protocol):
    """Rewrites ``asset.body`` of a linked asset."""

    def __call__(self, asset: CompositeAsset, context: PluginContext) -> PluginResult: ...


@runtime_checkable
class Postprocessor(Protocol):
    """Final touch-ups on a linked asset, e.g. adding a license header."""

    def __call__(self, asset: CompositeAsset, context: PluginContext) -> PluginResult: ...


Plugin = Callable[[Any, PluginContext], PluginResult]


async def invoke_plugin(plugin: Plugin, asset: Any, context: PluginContext) -> None:
    """Run a plugin, awaiting it if it is asynchronous.

    Args:
        plugin: Compiler, analyzer, linker, minifier or postprocessor.
        asset: The asset to operate on.
        context: Packager services.
    """
    result = plugin(asset, context)
    if inspect.isawaitable(result):
        await result
