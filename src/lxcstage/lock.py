# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Exclusive, non-blocking advisory lock on a fixed path."""

from __future__ import annotations

import fcntl
import logging
from pathlib import Path
from types import TracebackType
from typing import IO

from .errors import CacheBusy

logger = logging.getLogger(__name__)


class CacheLock:
    """Scoped ``flock(LOCK_EX | LOCK_NB)`` on *path*.

    Use as a context manager.  Contention raises :class:`CacheBusy`
    immediately; the lock is released on every exit path.  The lock
    file itself is never removed.
    """

    def __init__(self, path: Path):
        self.path = path
        self._file: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._file is not None

    def acquire(self) -> None:
        if self._file is not None:
            raise RuntimeError(f"Lock already held: {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        f = open(self.path, "a", encoding="utf-8")
        try:
            fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            f.close()
            raise CacheBusy(
                f"Another lxcstage process holds the cache lock ({self.path})"
            ) from None
        self._file = f
        logger.debug("Acquired %s", self.path)

    def release(self) -> None:
        if self._file is None:
            return
        try:
            fcntl.flock(self._file, fcntl.LOCK_UN)
        finally:
            self._file.close()
            self._file = None
            logger.debug("Released %s", self.path)

    def __enter__(self) -> CacheLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
