"""
Segment Watch Sources
Blocking "next new files" primitive over a commit log directory
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WatchKey:
    """Identifies one registered directory"""

    directory: Path


class WatchSource(ABC):
    """
    Source of file-creation notifications for one directory
    """

    @abstractmethod
    def register(self, directory: Path) -> WatchKey:
        """
        Start watching a directory for new files

        Returns:
            Key that tags notifications for this directory
        """
        pass

    @abstractmethod
    def take(self, timeout: Optional[float] = None) -> Optional[Tuple[WatchKey, List[Path]]]:
        """
        Block until new files appear

        Args:
            timeout: Give up after this many seconds (None waits forever)

        Returns:
            (key, new file paths in creation order), or None on timeout
        """
        pass


class PollingWatchSource(WatchSource):
    """
    Detects new segment files by polling the directory

    Each file is reported once while it exists. Files already present when
    the directory is registered are reported by the first take(), so a
    segment left behind by a crash is picked up again after a restart.
    """

    def __init__(
        self,
        pattern: str = "CommitLog-*.log",
        poll_interval_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize polling source

        Args:
            pattern: Glob selecting segment files
            poll_interval_seconds: How often to rescan the directory
            sleep: Sleep function (injectable for tests)
        """
        self.pattern = pattern
        self.poll_interval_seconds = poll_interval_seconds
        self._sleep = sleep
        self._key: Optional[WatchKey] = None
        self._seen: Set[str] = set()

    def register(self, directory: Path) -> WatchKey:
        directory = Path(directory).resolve()
        if not directory.is_dir():
            raise FileNotFoundError(f"Commit log directory does not exist: {directory}")

        self._key = WatchKey(directory=directory)
        logger.info("Watching directory", directory=str(directory), pattern=self.pattern)
        return self._key

    def take(self, timeout: Optional[float] = None) -> Optional[Tuple[WatchKey, List[Path]]]:
        if self._key is None:
            raise RuntimeError("No directory registered")

        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            new_files = self._scan()
            if new_files:
                return self._key, new_files

            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._sleep(min(self.poll_interval_seconds, remaining))
            else:
                self._sleep(self.poll_interval_seconds)

    def _scan(self) -> List[Path]:
        """Return files not reported yet, oldest name first"""
        assert self._key is not None
        present = sorted(self._key.directory.glob(self.pattern), key=lambda f: f.name)
        names = {f.name for f in present}

        # Forget retired files so a re-created segment is reported again
        self._seen &= names

        new_files = [f for f in present if f.name not in self._seen]
        self._seen.update(f.name for f in new_files)

        if new_files:
            logger.debug("Found new segment files", count=len(new_files))
        return new_files
