"""Module id to file path resolution.

Implements Node-style lookup restricted to a fixed list of file extensions
(the extensions that have a registered compiler):

    ./lib/util      -> <basedir>/lib/util, util.js, util/package.json main, util/index.js
    jquery          -> <basedir>/node_modules/jquery..., then each parent's node_modules

Resolution is synchronous; it only stats and reads small package.json files.
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .errors import ResolutionError

logger = logging.getLogger(__name__)

_RELATIVE_PREFIXES = ("./", "../", "/")


def resolve_module(module_id: str, basedir: str | os.PathLike[str], extensions: Sequence[str]) -> str:
    """Resolve a module id to an absolute file path.

    Args:
        module_id: Relative path ("./foo"), absolute path, or bare module
            name ("foo") to resolve.
        basedir: Directory the lookup starts from.
        extensions: Extensions (with leading dot) to probe, in priority order.

    Returns:
        Absolute, normalized path of the matching file.

    Raises:
        ResolutionError: If no file matches.
    """
    if not module_id:
        raise ResolutionError(f"Cannot resolve empty module id from '{basedir}'")

    base = Path(basedir).resolve()
    extensions = list(extensions)

    if module_id.startswith(_RELATIVE_PREFIXES) or module_id in (".", "..") or os.path.isabs(module_id):
        candidate = base / module_id
        found = _load_as_file(candidate, extensions) or _load_as_directory(candidate, extensions)
    else:
        found = _load_from_node_modules(module_id, base, extensions)

    if found is None:
        raise ResolutionError(f"Cannot find module '{module_id}' from '{base}'")

    resolved = os.path.normpath(str(found.resolve()))
    logger.debug("Resolved %s from %s -> %s", module_id, base, resolved)
    return resolved


def _load_as_file(candidate: Path, extensions: Iterable[str]) -> Optional[Path]:
    """Try the path itself, then the path with each extension appended."""
    if candidate.is_file():
        return candidate
    for ext in extensions:
        with_ext = candidate.with_name(candidate.name + ext)
        if with_ext.is_file():
            return with_ext
    return None


def _load_as_directory(candidate: Path, extensions: Sequence[str]) -> Optional[Path]:
    """Try package.json "main", then index + extension, inside a directory."""
    if not candidate.is_dir():
        return None

    package_json = candidate / "package.json"
    if package_json.is_file():
        main = _read_package_main(package_json)
        if main:
            target = candidate / main
            found = _load_as_file(target, extensions) or _load_index(target, extensions)
            if found is not None:
                return found

    return _load_index(candidate, extensions)


def _load_index(directory: Path, extensions: Iterable[str]) -> Optional[Path]:
    if not directory.is_dir():
        return None
    for ext in extensions:
        index = directory / f"index{ext}"
        if index.is_file():
            return index
    return None


def _load_from_node_modules(module_id: str, base: Path, extensions: Sequence[str]) -> Optional[Path]:
    """Walk from base up to the filesystem root checking node_modules dirs."""
    for directory in (base, *base.parents):
        if directory.name == "node_modules":
            continue
        candidate = directory / "node_modules" / module_id
        found = _load_as_file(candidate, extensions) or _load_as_directory(candidate, extensions)
        if found is not None:
            return found
    return None


def _read_package_main(package_json: Path) -> Optional[str]:
    """Return the "main" field of a package.json, or None if unusable."""
    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Ignoring unreadable {package_json}: {e}")
        return None

    main = data.get("main") if isinstance(data, dict) else None
    return main if isinstance(main, str) and main else None
