"""Polling watch loop for incremental rebuilds.

After every write the watcher records the modification time of each source
file the packager compiled, and of the directories those files and the entry
points live in. When one of them changes or disappears it calls invalidate()
on the packager and writes again. A directory mtime changes when a file is
created in it, so an entry point or required file that is missing when a
build fails triggers a rebuild once it appears. Failed builds are reported
and the watcher keeps going.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from .errors import PackagerError
from .packager import AssetPackager

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


def _snapshot(paths: list[str]) -> dict[str, Optional[int]]:
    snapshot: dict[str, Optional[int]] = {}
    for path in paths:
        try:
            snapshot[path] = os.stat(path).st_mtime_ns
        except OSError:
            snapshot[path] = None
    return snapshot


class FileWatcher:
    """Rebuilds a packager's output whenever one of its sources changes.

    Args:
        packager: Packager to rebuild.
        output_path: File the built body is written to.
        interval: Seconds between polls.
        on_rebuild: Called with the written path (or the error) after
            every rebuild attempt.
    """

    def __init__(
        self,
        packager: AssetPackager,
        output_path: str | os.PathLike[str],
        interval: float = DEFAULT_POLL_INTERVAL,
        on_rebuild: Optional[Callable[[Path | Exception], None]] = None,
    ) -> None:
        self._packager = packager
        self._output_path = output_path
        self._interval = interval
        self._on_rebuild = on_rebuild
        self._snapshot: dict[str, Optional[int]] = {}
        self._stop = threading.Event()

    def rebuild(self) -> Path | Exception:
        """Invalidate, write, and re-snapshot the sources.

        Returns:
            The written path, or the PackagerError/OSError that stopped it.
        """
        self._packager.invalidate()
        result: Path | Exception
        try:
            result = self._packager.write_sync(self._output_path)
        except (PackagerError, OSError) as e:
            logger.warning(f"Rebuild failed: {e}")
            result = e
        self._snapshot = _snapshot(self.watched_paths())
        if self._on_rebuild is not None:
            self._on_rebuild(result)
        return result

    def watched_paths(self) -> list[str]:
        """Compiled sources, then the directories of sources and entry points."""
        basedir = self._packager.basedir
        sources = self._packager.source_paths()
        directories = [basedir]
        directories.extend(os.path.dirname(path) for path in sources)
        for entry in self._packager.config.entry_points:
            directories.append(os.path.dirname(os.path.normpath(os.path.join(basedir, entry))))
        return list(dict.fromkeys([*sources, *directories]))

    def changed_paths(self) -> list[str]:
        """Watched paths whose mtime differs from the last snapshot."""
        current = _snapshot(list(self._snapshot))
        return [path for path, mtime in current.items() if mtime != self._snapshot.get(path)]

    def poll_once(self) -> bool:
        """Check for changes once, rebuilding if any source changed.

        Returns:
            True if a rebuild ran.
        """
        changed = self.changed_paths()
        if not changed:
            return False
        logger.info("Changed: %s", ", ".join(changed))
        self.rebuild()
        return True

    def run(self) -> None:
        """Build, then poll until stop() is called or the user interrupts."""
        self.rebuild()
        while not self._stop.wait(self._interval):
            self.poll_once()

    def stop(self) -> None:
        """Ask run() to return after the current poll."""
        self._stop.set()
