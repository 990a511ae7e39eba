"""ScriptKit - Watch Mode

Re-runs a script whenever one of the files its last run consulted changes.

The watched set is taken from the most recent run only. A run can import
different modules depending on its inputs, so every re-run starts from a
freshly built interpreter and replaces the set entirely.

A file counts as unchanged while its mtime equals the one captured, or while
it stays missing after being captured missing. Anything else (new mtime,
deleted, created) triggers a re-run.
"""

import time
import logging
from typing import Callable, List, Optional, TextIO, Tuple

from scriptkit.config import settings
from scriptkit.models import WatchedFile, mtime_if_exists

logger = logging.getLogger(__name__)


class WatchLoop:
    """Runs ``run_once`` and, in watch mode, again after every change.

    Args:
        run_once: Builds a fresh interpreter, runs and reports the script,
            returns (success, watched files)
        info_stream: Where the "Watching for changes" line goes
        interval: Seconds between polls
        sleep: Blocking sleep, replaceable for tests
        stat: mtime lookup, replaceable for tests
    """

    def __init__(
        self,
        run_once: Callable[[], Tuple[bool, List[WatchedFile]]],
        info_stream: TextIO,
        interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        stat: Callable[..., Optional[int]] = mtime_if_exists,
    ):
        self.run_once = run_once
        self.info_stream = info_stream
        self.interval = settings.WATCH_INTERVAL if interval is None else interval
        self.sleep = sleep
        self.stat = stat
        self.runs = 0

    def unchanged(self, watched: List[WatchedFile]) -> bool:
        return all(self.stat(path) == mtime for path, mtime in watched)

    def run(self, watch: bool) -> bool:
        """Return the first run's success when not watching; never returns otherwise."""
        while True:
            success, watched = self.run_once()
            self.runs += 1
            if not watch:
                return success

            print(f"Watching for changes to {len(watched)} files... (Ctrl-C to exit)", file=self.info_stream)
            logger.debug(f"Run {self.runs} watching {[str(w.path) for w in watched]}")
            while self.unchanged(watched):
                self.sleep(self.interval)
            logger.info(f"Change detected after run {self.runs}; re-running")
