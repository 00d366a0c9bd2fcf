"""Data models for the asset packager.

Defines the core dataclasses passed between the packager and its plugins:
- BuildStage: Enum naming each step of the build pipeline
- SourceAsset: One compiled and analyzed source file
- CompositeAsset: The linked output of a build
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence


class BuildStage(Enum):
    """Stage of the build pipeline."""

    COMPILE = "compile"
    ANALYZE = "analyze"
    LINK = "link"
    MINIFY = "minify"
    POSTPROCESS = "postprocess"

    def __str__(self) -> str:
        """Return the string value for log messages."""
        return self.value


@dataclass
class SourceAsset:
    """A single source file after compilation and analysis.

    The compiler fills in ``body`` and the analyzer fills in ``dependencies``.
    Once the source asset cache publishes the asset it is frozen and shared
    by every caller that asked for the same path.

    Attributes:
        path: Absolute, resolved filesystem path. Identifies the asset.
        body: Compiled text content.
        dependencies: Absolute paths of the assets this one requires, in
            declaration order.
    """

    path: str
    body: str = ""
    dependencies: Sequence[str] = field(default_factory=list)
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: object) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"SourceAsset {self.path} is frozen")
        super().__setattr__(name, value)

    def freeze(self) -> None:
        """Make the asset read-only. Dependencies become a tuple."""
        self.dependencies = tuple(self.dependencies)
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """True once the asset has been published by the cache."""
        return self._frozen


@dataclass
class CompositeAsset:
    """The output of one build: roots plus the linked body.

    Attributes:
        path: Target output path, or None when writing to a stream.
        assets: Root source assets supplied as build entry points.
        body: Linked (and possibly minified and postprocessed) text.
        encoding: Text encoding used when the body is written to disk.
    """

    path: Optional[str]
    assets: list[SourceAsset]
    body: str = ""
    encoding: str = "utf-8"
