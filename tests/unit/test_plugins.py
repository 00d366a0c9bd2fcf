"""Unit tests for the default plugins."""

import pytest

from assetpack.errors import AnalyzeError, CompileError, ResolutionError
from assetpack.models import CompositeAsset, SourceAsset
from assetpack.plugins import (
    HeaderPostprocessor,
    merge_linker,
    require_analyzer,
    stylesheet_require_analyzer,
    text_compiler,
)


class RecordingResolver:
    """Context whose resolve() maps ids to '<basedir>/<id>.js' and records calls."""

    def __init__(self, missing: set[str] | None = None, broken: bool = False) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.missing = missing or set()
        self.broken = broken
        self.assets: dict[str, SourceAsset] = {}

    def resolve(self, module_id: str, basedir: str | None = None) -> str:
        self.calls.append((module_id, basedir))
        if self.broken:
            raise ValueError("resolver exploded")
        if module_id in self.missing:
            raise ResolutionError(f"Cannot find module '{module_id}'")
        return f"{basedir}/{module_id}.js"

    async def get_source_asset(self, path: str) -> SourceAsset:
        return self.assets[path]


class TestTextCompiler:
    """text_compiler reads files as UTF-8."""

    @pytest.mark.asyncio
    async def test_reads_body(self, source_tree):
        """The file content becomes the asset body."""
        root = source_tree({"a.js": "var a = 'é';\n"})
        asset = SourceAsset(path=str(root / "a.js"))
        await text_compiler(asset, RecordingResolver())
        assert asset.body == "var a = 'é';\n"

    @pytest.mark.asyncio
    async def test_missing_file_raises_compile_error(self, tmp_path):
        """An unreadable file raises CompileError chained to the OSError."""
        asset = SourceAsset(path=str(tmp_path / "missing.js"))
        with pytest.raises(CompileError, match="missing.js") as exc_info:
            await text_compiler(asset, RecordingResolver())
        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.path == asset.path


class TestRequireAnalyzer:
    """//= require directives."""

    def test_no_directives(self):
        """A body without directives leaves dependencies empty."""
        asset = SourceAsset(path="/src/a.js", body="var a = 1;")
        require_analyzer(asset, RecordingResolver())
        assert list(asset.dependencies) == []

    def test_directives_in_order(self):
        """Each directive is resolved relative to the asset's directory, in order."""
        asset = SourceAsset(
            path="/src/app.js",
            body="//= require ./b\n  //=  require   ./a  \nvar app;\n",
        )
        ctx = RecordingResolver()
        require_analyzer(asset, ctx)
        assert ctx.calls == [("./b", "/src"), ("./a", "/src")]
        assert list(asset.dependencies) == ["/src/./b.js", "/src/./a.js"]

    def test_directive_must_start_line(self):
        """A directive after code on the same line is ignored."""
        asset = SourceAsset(path="/src/a.js", body="var x; //= require ./b\n")
        require_analyzer(asset, RecordingResolver())
        assert list(asset.dependencies) == []

    def test_crlf_line_endings(self):
        """Trailing carriage returns are not part of the id."""
        asset = SourceAsset(path="/src/a.js", body="//= require ./b\r\nvar a;\r\n")
        ctx = RecordingResolver()
        require_analyzer(asset, ctx)
        assert ctx.calls == [("./b", "/src")]

    def test_resolution_error_propagates(self):
        """A missing module raises ResolutionError unchanged."""
        asset = SourceAsset(path="/src/a.js", body="//= require ./gone\n")
        with pytest.raises(ResolutionError, match="gone"):
            require_analyzer(asset, RecordingResolver(missing={"./gone"}))

    def test_unexpected_error_wrapped(self):
        """Other failures are reported as AnalyzeError."""
        asset = SourceAsset(path="/src/a.js", body="//= require ./b\n")
        with pytest.raises(AnalyzeError, match="resolver exploded"):
            require_analyzer(asset, RecordingResolver(broken=True))


class TestStylesheetRequireAnalyzer:
    """/*= require */ directives."""

    def test_directives(self):
        """Comment-style directives are collected."""
        asset = SourceAsset(path="/css/site.css", body="/*= require ./reset */\nbody { margin: 0 }\n")
        ctx = RecordingResolver()
        stylesheet_require_analyzer(asset, ctx)
        assert ctx.calls == [("./reset", "/css")]

    def test_script_directive_ignored(self):
        """Script-style directives do not apply to stylesheets."""
        asset = SourceAsset(path="/css/site.css", body="//= require ./reset\n")
        stylesheet_require_analyzer(asset, RecordingResolver())
        assert list(asset.dependencies) == []


class TestMergeLinker:
    """merge_linker concatenates the closure."""

    @pytest.mark.asyncio
    async def test_joins_with_newlines(self):
        """Bodies are joined dependency-first with newlines."""
        ctx = RecordingResolver()
        b = SourceAsset(path="b", body="b;")
        a = SourceAsset(path="a", body="a;", dependencies=["b"])
        ctx.assets = {"a": a, "b": b}
        composite = CompositeAsset(path=None, assets=[a])
        await merge_linker(composite, ctx)
        assert composite.body == "b;\na;"


class TestHeaderPostprocessor:
    """HeaderPostprocessor prepends its header."""

    def test_prepends_header(self):
        """The header becomes the first line."""
        composite = CompositeAsset(path=None, assets=[], body="a;")
        HeaderPostprocessor("/* (c) Example */")(composite, RecordingResolver())
        assert composite.body == "/* (c) Example */\na;"

    def test_repr(self):
        """repr names the header for log output."""
        assert repr(HeaderPostprocessor("x")) == "HeaderPostprocessor('x')"
