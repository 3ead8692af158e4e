"""Sentinel-file lock preventing two instances of a stage from running."""

import atexit
import logging
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 300  # seconds


class LockGuard:
    """Mutual exclusion for one polling stage, backed by ``<lock_dir>/<stage>.lock``.

    A sentinel older than ``max_age`` seconds is treated as abandoned by a
    crashed run and replaced. Once acquired, the sentinel is removed on
    interpreter exit and on SIGINT/SIGTERM.
    """

    def __init__(self, lock_dir: Union[str, Path], max_age: float = DEFAULT_LOCK_TIMEOUT,
                 install_signal_handlers: bool = True):
        self.lock_dir = Path(lock_dir)
        self.max_age = max_age
        self.install_signal_handlers = install_signal_handlers
        self.lock_file: Optional[Path] = None
        self._previous_handlers: Dict[int, object] = {}

    @property
    def held(self) -> bool:
        return self.lock_file is not None

    def lock_path(self, stage_name: str) -> Path:
        return self.lock_dir / f"{stage_name}.lock"

    def acquire(self, stage_name: str) -> bool:
        """Acquire the stage lock. Returns False if another instance holds it."""
        if self.held:
            return False

        lock_file = self.lock_path(stage_name)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

        if lock_file.exists():
            try:
                lock_age = time.time() - lock_file.stat().st_mtime
            except FileNotFoundError:
                lock_age = None

            if lock_age is not None:
                if lock_age < self.max_age:
                    logger.warning(
                        f"Another instance is already running (lock age: {lock_age:.0f} seconds): {lock_file}"
                    )
                    return False

                logger.warning(f"Stale lock file found (age: {lock_age:.0f} seconds), removing it")
                lock_file.unlink(missing_ok=True)

        try:
            fd = os.open(lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            logger.warning(f"Lock file appeared while acquiring: {lock_file}")
            return False

        with os.fdopen(fd, "w") as fh:
            fh.write(f"{os.getpid()}\n")

        self.lock_file = lock_file
        atexit.register(self.release)
        self._register_signal_handlers()
        logger.info(f"Acquired lock for {stage_name}")
        return True

    def release(self) -> None:
        """Remove the sentinel if this instance holds it. Safe to call repeatedly."""
        if self.lock_file is None:
            return

        lock_file, self.lock_file = self.lock_file, None
        lock_file.unlink(missing_ok=True)
        atexit.unregister(self.release)
        self._restore_signal_handlers()
        logger.info(f"Lock file removed: {lock_file}")

    def _register_signal_handlers(self) -> None:
        # signal.signal is only allowed from the main thread
        if not self.install_signal_handlers or threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _restore_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum, handler in self._previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, releasing lock")
        self.release()
        sys.exit(0)
