"""
Timestamped user-facing output for the assetpack CLI.

All messages are prefixed with the elapsed time since program launch in
MM:SS.cc format and go to stderr, so stdout stays free for a built body
that is being piped somewhere.

Example output:
    00:00.01 assetpack v0.1.0
    00:00.04 Building app.js...
    00:00.09       Wrote /project/dist/app.js
    00:00.09 Build time: 0.08s

Usage:
    from assetpack.output import init_timer, log, log_detail, log_error

    init_timer()
    log("Building app.js...")
    log_detail("Wrote dist/app.js")
"""

import time
from typing import Optional

from rich.console import Console
from rich.markup import escape

# Global state for the timer
_start_time: Optional[float] = None
_console: Console = Console(stderr=True, highlight=False, soft_wrap=True)
_verbose: bool = False


def init_timer(console: Optional[Console] = None) -> None:
    """
    Initialize the program timer.

    If not called explicitly, it will be called automatically on first log.

    Args:
        console: Optional Rich console to print to (defaults to stderr)
    """
    global _start_time, _console
    _start_time = time.time()
    if console is not None:
        _console = console


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for logging.

    Args:
        verbose: If True, verbose_only messages are printed too.
    """
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Elapsed time in seconds since timer initialization."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str, style: Optional[str] = None) -> None:
    text = escape(message)
    if style:
        text = f"[{style}]{text}[/{style}]"
    _console.print(f"[dim]{format_timestamp()}[/dim] {text}")


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log a detail message (indented).

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_header(title: str, version: str) -> None:
    """Log the program header."""
    _print(f"{title} v{version}", style="bold")


def log_build_complete(build_time: float, verbose_only: bool = False) -> None:
    """
    Log build completion message.

    Args:
        build_time: Total build time in seconds
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"Build time: {build_time:.2f}s", style="green")


def log_error(message: str) -> None:
    """Log an error message."""
    _print(f"ERROR: {message}", style="bold red")


def log_warning(message: str) -> None:
    """Log a warning message."""
    _print(f"WARNING: {message}", style="yellow")
