"""Asset packager: builds one output asset from one or more source assets.

The packager ties the pieces together:
1. resolve() maps entry-point module ids to absolute paths
2. get_source_asset() compiles and analyzes each file once (OnceCache)
3. build() links the roots, then minifies and postprocesses (memoized)
4. write() persists the built body to disk
5. invalidate() drops both caches so the next build starts from scratch

Example:
    packager = create_packager(main="./app.js", basedir="assets", path="dist/app.js")
    await packager.write()
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Iterable, Mapping, Optional, TypeVar, Union

from .cache import OnceCache
from .config import DEFAULTS, PackagerConfig, merge_config
from .contract import invoke_plugin
from .errors import ConfigurationError
from .models import BuildStage, CompositeAsset, SourceAsset
from .resolver import resolve_module

logger = logging.getLogger(__name__)

_BUILD_KEY = "build"

_T = TypeVar("_T")


class AssetPackager:
    """Builds a single composite asset from a configuration.

    The packager is also the PluginContext handed to every plugin. It owns
    two caches: compiled source assets keyed by path, and the build result.
    Both hold failures as well as successes until invalidate() is called.

    Args:
        config: Base configuration. Defaults to DEFAULTS (the javascript
            preset).
        **overrides: Field overrides applied on top of config.
    """

    def __init__(self, config: Optional[PackagerConfig] = None, **overrides: Any) -> None:
        self.config = merge_config(config if config is not None else DEFAULTS, overrides)
        self._source_assets: OnceCache[str, SourceAsset] = OnceCache("source asset")
        self._build: OnceCache[str, CompositeAsset] = OnceCache("build")

    def __repr__(self) -> str:
        return f"AssetPackager(main={self.config.main!r}, path={self.config.path!r})"

    @property
    def basedir(self) -> str:
        return self.config.basedir

    @property
    def path(self) -> Optional[str]:
        return self.config.path

    def resolve(self, module_id: str, basedir: Optional[str] = None) -> str:
        """Map a module id to a physical path.

        Only files with an extension that has a registered compiler are
        considered.

        Args:
            module_id: Module id or path to resolve.
            basedir: Directory to start from. Defaults to the packager basedir.

        Returns:
            Absolute path of the module.

        Raises:
            ResolutionError: If no matching file exists.
        """
        return resolve_module(module_id, basedir or self.config.basedir, self.config.extensions)

    async def get_source_asset(self, path: Union[str, os.PathLike[str]]) -> SourceAsset:
        """Return the compiled and analyzed asset for a path.

        The compiler and analyzer run at most once per path until
        invalidate(); concurrent and later callers share the same result,
        including a failure.

        Args:
            path: Path to the source file, resolved against basedir.

        Returns:
            The frozen SourceAsset.

        Raises:
            ConfigurationError: If no compiler is registered for the file
                extension or no analyzer is configured.
            PackagerError: Whatever the compiler or analyzer raised.
        """
        asset_path = os.path.normpath(os.path.join(self.config.basedir, os.fspath(path)))
        return await self._source_assets.get(asset_path, lambda: self._compile(asset_path))

    async def _compile(self, asset_path: str) -> SourceAsset:
        extension = os.path.splitext(asset_path)[1]
        compiler = self.config.compilers.get(extension)
        analyzer = self.config.analyzer

        if compiler is None:
            raise ConfigurationError(f"No compiler for {asset_path}", path=asset_path)
        if analyzer is None:
            raise ConfigurationError(f"No analyzer for {asset_path}", path=asset_path)

        asset = SourceAsset(path=asset_path)

        logger.debug("[%s] %s", BuildStage.COMPILE, asset_path)
        await invoke_plugin(compiler, asset, self)

        logger.debug("[%s] %s", BuildStage.ANALYZE, asset_path)
        await invoke_plugin(analyzer, asset, self)

        asset.freeze()
        return asset

    async def build(self) -> CompositeAsset:
        """Build the composite asset described by the configuration.

        The result is memoized: later calls return the same CompositeAsset
        (or raise the same error) until invalidate() is called.

        Returns:
            The built CompositeAsset with its final body.

        Raises:
            ConfigurationError: If main, the linker, or a required minifier
                is missing.
            ResolutionError: If an entry point cannot be resolved.
            PackagerError: Whatever a plugin raised.
        """
        return await self._build.get(_BUILD_KEY, self._run_build)

    async def _run_build(self) -> CompositeAsset:
        config = self.config
        label = config.path or "<stdout>"

        if not config.entry_points:
            raise ConfigurationError(f"Main module not specified for {label}", path=config.path)
        if config.linker is None:
            raise ConfigurationError(f"Linker not found for {label}", path=config.path)
        if config.minify and config.minifier is None:
            raise ConfigurationError(f"Minifier not found for {label}", path=config.path)

        # Entry points can be module ids as well as paths.
        entry_paths = [self.resolve(entry, config.basedir) for entry in config.entry_points]
        roots = await asyncio.gather(*(self.get_source_asset(path) for path in entry_paths))

        asset = CompositeAsset(path=config.path, assets=list(roots), encoding=config.encoding)

        logger.debug("[%s] %s (%d root(s))", BuildStage.LINK, label, len(roots))
        await invoke_plugin(config.linker, asset, self)

        if config.minify:
            logger.debug("[%s] %s", BuildStage.MINIFY, label)
            await invoke_plugin(config.minifier, asset, self)

        for postprocessor in config.postprocessors:
            logger.debug("[%s] %s: %r", BuildStage.POSTPROCESS, label, postprocessor)
            await invoke_plugin(postprocessor, asset, self)

        logger.info(f"Built {label} ({len(asset.body)} chars)")
        return asset

    async def write(self, output_path: Union[str, os.PathLike[str], None] = None) -> Path:
        """Build and write the body to disk.

        Nothing is written if the build fails.

        Args:
            output_path: Destination file. Defaults to the configured path.

        Returns:
            Absolute path of the written file.

        Raises:
            ConfigurationError: If no output path is given or configured.
            OSError: If the file cannot be written.
        """
        target = output_path if output_path is not None else self.config.path
        if target is None:
            raise ConfigurationError("No output path specified")
        destination = Path(target).resolve()

        asset = await self.build()

        def _write() -> None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(asset.body, encoding=asset.encoding)

        await asyncio.to_thread(_write)
        logger.info(f"Wrote {destination}")
        return destination

    def invalidate(self) -> None:
        """Drop cached source assets and the cached build."""
        logger.debug("Invalidating %r", self)
        self._source_assets.clear()
        self._build.clear()

    def source_paths(self) -> list[str]:
        """Paths of source assets compiled (or attempted) since the last invalidate()."""
        return list(self._source_assets.keys())

    async def settle(self) -> None:
        """Wait for every compile and build started by this packager to finish."""
        await self._source_assets.wait_pending()
        await self._build.wait_pending()

    def _run_sync(self, awaitable: Awaitable[_T]) -> _T:
        async def _run() -> _T:
            try:
                return await awaitable
            finally:
                # asyncio.run() cancels tasks still pending when it returns.
                await self.settle()

        return asyncio.run(_run())

    def build_sync(self) -> CompositeAsset:
        """Synchronous build() for callers without an event loop."""
        return self._run_sync(self.build())

    def write_sync(self, output_path: Union[str, os.PathLike[str], None] = None) -> Path:
        """Synchronous write() for callers without an event loop."""
        return self._run_sync(self.write(output_path))


async def write_all(packagers: Iterable[AssetPackager]) -> list[Path]:
    """Build and write several packagers concurrently.

    Every packager runs to completion even when another one fails, so no
    write is left half-finished when the event loop closes.

    Args:
        packagers: Packagers with a configured output path.

    Returns:
        Written paths, in the order the packagers were given.

    Raises:
        Exception: The first error, in packager order, once all writes
            have finished.
    """
    results = await asyncio.gather(*(packager.write() for packager in packagers), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def create_packager(config: Union[PackagerConfig, Mapping[str, Any], None] = None, **overrides: Any) -> AssetPackager:
    """Return a new packager. This is the preferred public API.

    Args:
        config: A PackagerConfig, or a mapping of overrides on DEFAULTS.
        **overrides: Further field overrides.

    Returns:
        New AssetPackager instance.
    """
    if isinstance(config, Mapping):
        overrides = {**config, **overrides}
        config = None
    return AssetPackager(config, **overrides)
