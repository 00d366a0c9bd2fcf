"""Pytest configuration and fixtures for assetpack tests."""

from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture(autouse=True)
def isolate_output_globals():
    """Reset output.py module state before/after each test.

    The CLI sets verbose mode and the timer on the output module; restoring
    them keeps tests independent of execution order.
    """
    from assetpack import output

    original_start_time = output._start_time
    original_console = output._console
    original_verbose = output._verbose

    yield

    output._start_time = original_start_time
    output._console = original_console
    output._verbose = original_verbose


@pytest.fixture
def source_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes {relative_path: content} under tmp_path.

    The helper returns tmp_path so tests can use it as the packager basedir.
    """

    def _write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            target = tmp_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
