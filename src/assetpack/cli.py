"""
Command-line interface for assetpack.

This module provides the `assetpack` CLI tool for packaging script and
stylesheet assets.
"""

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from assetpack import __version__
from assetpack.config import PackagerPreset, get_preset
from assetpack.errors import PackagerError
from assetpack.output import init_timer, log, log_build_complete, log_detail, log_error, log_header, set_verbose
from assetpack.packager import AssetPackager, create_packager, write_all
from assetpack.plugins import HeaderPostprocessor
from assetpack.watch import FileWatcher


@dataclass
class PackArgs:
    """Arguments for the pack command."""

    inputs: list[Path]
    packager: str = PackagerPreset.JAVASCRIPT.value
    pipeline: Optional[str] = None
    output: Optional[Path] = None
    watch: bool = False
    minify: bool = False
    all: bool = False
    basedir: Path = field(default_factory=Path.cwd)
    header: Optional[str] = None
    verbose: bool = False


def _make_packager(args: PackArgs, main: list[str], output: Optional[Path]) -> AssetPackager:
    postprocessors = [HeaderPostprocessor(args.header)] if args.header else []
    return create_packager(
        get_preset(args.packager),
        basedir=args.basedir,
        main=main,
        minify=args.minify,
        postprocessors=postprocessors,
        path=output,
    )


def _validate(args: PackArgs) -> None:
    """Reject option combinations that cannot work.

    Raises:
        PackagerError: With a user-facing message.
    """
    if args.pipeline:
        raise PackagerError(f"--pipeline is not implemented (requested '{args.pipeline}')")
    if args.watch and args.output is None:
        raise PackagerError("--watch requires --output")
    if args.all and args.output is None:
        raise PackagerError("--all requires --output (a directory)")
    if args.all and args.watch:
        raise PackagerError("--watch cannot be combined with --all")
    # Fail early on an unknown preset name.
    get_preset(args.packager)


def pack_command(args: PackArgs) -> None:
    """Package assets.

    Examples:
        assetpack app.js                       # Write the bundle to stdout
        assetpack app.js -o dist/app.js        # Write to a file
        assetpack app.js -o dist/app.js -w     # Rebuild when sources change
        assetpack a.js b.js --all -o dist      # One output per input
        assetpack site.css --packager stylesheet -o dist/site.css
    """
    init_timer()
    set_verbose(args.verbose)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        _validate(args)
        inputs = [str(p.resolve()) for p in args.inputs]

        if args.watch and args.output is not None:
            log_header("assetpack", __version__)
            watcher = FileWatcher(
                _make_packager(args, inputs, args.output),
                args.output,
                on_rebuild=_report_rebuild,
            )
            log(f"Watching {len(inputs)} input(s), writing {args.output}")
            watcher.run()
            sys.exit(0)

        start_time = time.time()

        if args.all and args.output is not None:
            packagers = [_make_packager(args, [path], args.output / Path(path).name) for path in inputs]
            written = asyncio.run(write_all(packagers))
            for path in written:
                log_detail(f"Wrote {path}", verbose_only=True)
        elif args.output is not None:
            written_path = _make_packager(args, inputs, args.output).write_sync()
            log_detail(f"Wrote {written_path}", verbose_only=True)
        else:
            asset = _make_packager(args, inputs, None).build_sync()
            sys.stdout.write(asset.body)
            sys.stdout.flush()

        log_build_complete(time.time() - start_time, verbose_only=True)
        sys.exit(0)

    except KeyboardInterrupt:
        log_error("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    except (PackagerError, OSError) as e:
        log_error(str(e))
        sys.exit(1)


def _report_rebuild(result: Path | Exception) -> None:
    if isinstance(result, Exception):
        log_error(str(result))
    else:
        log(f"Wrote {result}")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the assetpack CLI."""
    parser = argparse.ArgumentParser(
        prog="assetpack",
        description="Package script and stylesheet assets with their dependencies",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"assetpack {__version__}",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Entry-point source files",
    )
    parser.add_argument(
        "--packager",
        default=PackagerPreset.JAVASCRIPT.value,
        choices=[p.value for p in PackagerPreset],
        help="Default plugin set (default: javascript)",
    )
    parser.add_argument(
        "--pipeline",
        default=None,
        help="Named multi-output pipeline (not implemented)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file, or output directory with --all (default: stdout)",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Rebuild when a source file changes (requires --output)",
    )
    parser.add_argument(
        "-m",
        "--minify",
        action="store_true",
        help="Minify the linked output",
    )
    parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="Build each input into its own file in the --output directory",
    )
    parser.add_argument(
        "--basedir",
        type=Path,
        default=Path.cwd(),
        help="Root for resolving module ids (default: current directory)",
    )
    parser.add_argument(
        "--header",
        default=None,
        help="Text to prepend to the output, e.g. a copyright notice",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """assetpack - asset build pipeline."""
    parsed_args = build_parser().parse_args(argv)

    args = PackArgs(
        inputs=parsed_args.inputs,
        packager=parsed_args.packager,
        pipeline=parsed_args.pipeline,
        output=parsed_args.output,
        watch=parsed_args.watch,
        minify=parsed_args.minify,
        all=parsed_args.all,
        basedir=parsed_args.basedir,
        header=parsed_args.header,
        verbose=parsed_args.verbose,
    )
    pack_command(args)


if __name__ == "__main__":
    main()
