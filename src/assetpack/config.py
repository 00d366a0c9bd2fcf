"""Packager Configuration.

This module defines the immutable configuration a packager is built from
and the presets that supply default plugins.

Design:
    Defaults live in DEFAULTS and in the PRESETS table, never on the
    packager class. merge_config() is a pure function: it takes a base
    config plus overrides and returns a new PackagerConfig, so two packagers
    never share mutable configuration state.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from .contract import Analyzer, Compiler, Linker, Minifier, Postprocessor
from .errors import ConfigurationError
from .plugins import merge_linker, require_analyzer, stylesheet_require_analyzer, text_compiler


class PackagerPreset(Enum):
    """Named default plugin sets, selectable from the CLI."""

    JAVASCRIPT = "javascript"
    STYLESHEET = "stylesheet"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PackagerConfig:
    """Configuration for one packager instance.

    Only a compiler for each extension actually used is needed up front;
    main, linker and (when minify is set) minifier are checked when a build
    starts.

    Attributes:
        basedir: Root for resolving relative module references.
        compilers: Extension (with leading dot) to compiler.
        analyzer: Analyzer applied to every compiled asset.
        linker: Merges the dependency closure into one body.
        minify: Whether to run the minifier after linking.
        minifier: Required when minify is True.
        postprocessors: Applied in order after minification.
        main: Entry-point module id(s) or path(s).
        path: Default output path used by write().
        encoding: Text encoding of the written output.
    """

    basedir: str = "."
    compilers: Mapping[str, Compiler] = field(default_factory=dict)
    analyzer: Optional[Analyzer] = None
    linker: Optional[Linker] = None
    minify: bool = False
    minifier: Optional[Minifier] = None
    postprocessors: tuple[Postprocessor, ...] = ()
    main: Union[str, tuple[str, ...], None] = None
    path: Optional[str] = None
    encoding: str = "utf-8"

    @property
    def extensions(self) -> list[str]:
        """Extensions that have a registered compiler, in registration order."""
        return list(self.compilers)

    @property
    def entry_points(self) -> tuple[str, ...]:
        """main normalized to a tuple; a single id becomes a one-element tuple."""
        if self.main is None:
            return ()
        if isinstance(self.main, str):
            return (self.main,)
        return tuple(self.main)


_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(PackagerConfig))

PRESETS: dict[PackagerPreset, dict[str, Any]] = {
    PackagerPreset.JAVASCRIPT: {
        "compilers": {".js": text_compiler},
        "analyzer": require_analyzer,
        "linker": merge_linker,
    },
    PackagerPreset.STYLESHEET: {
        "compilers": {".css": text_compiler},
        "analyzer": stylesheet_require_analyzer,
        "linker": merge_linker,
    },
}

DEFAULT_PRESET = PackagerPreset.JAVASCRIPT


def get_preset(name: Union[str, PackagerPreset]) -> dict[str, Any]:
    """Return a copy of the plugin defaults for a preset.

    Raises:
        ConfigurationError: If the preset name is unknown.
    """
    try:
        preset = name if isinstance(name, PackagerPreset) else PackagerPreset(name)
    except ValueError:
        valid = ", ".join(p.value for p in PackagerPreset)
        raise ConfigurationError(f"Unknown packager '{name}' (expected one of: {valid})")
    return dict(PRESETS[preset])


DEFAULTS = PackagerConfig(**get_preset(DEFAULT_PRESET))


def merge_config(base: PackagerConfig, overrides: Optional[Mapping[str, Any]] = None) -> PackagerConfig:
    """Apply overrides on top of a base config.

    Args:
        base: Config supplying values for every field not overridden.
        overrides: Field name to value. An explicit None clears a field,
            e.g. linker=None.

    Returns:
        A new PackagerConfig with an absolute basedir and normalized
        main/postprocessors.

    Raises:
        ConfigurationError: If an override names an unknown field.
    """
    overrides = dict(overrides or {})

    unknown = sorted(set(overrides) - _FIELD_NAMES)
    if unknown:
        raise ConfigurationError(f"Unknown configuration option(s): {', '.join(unknown)}")

    values = {f.name: getattr(base, f.name) for f in dataclasses.fields(PackagerConfig)}
    values.update(overrides)

    values["basedir"] = os.path.abspath(os.fspath(values["basedir"]))
    values["compilers"] = _normalize_compilers(values["compilers"] or {})
    values["postprocessors"] = tuple(values["postprocessors"] or ())
    values["main"] = _normalize_main(values["main"])
    if values["path"] is not None:
        values["path"] = os.fspath(values["path"])

    return PackagerConfig(**values)


def _normalize_compilers(compilers: Mapping[str, Compiler]) -> dict[str, Compiler]:
    """Copy the mapping, adding a leading dot to bare extensions."""
    return {(ext if ext.startswith(".") else f".{ext}"): compiler for ext, compiler in compilers.items()}


def _normalize_main(main: Union[str, os.PathLike[str], Sequence[Any], None]) -> Union[str, tuple[str, ...], None]:
    if main is None or isinstance(main, str):
        return main
    if isinstance(main, os.PathLike):
        return os.fspath(main)
    return tuple(os.fspath(m) for m in main)
