# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Per-distribution download cache.

The cache root holds the most recently fetched stage archive and its
extracted tree.  Every mutation (download, extract, purge) happens
while holding the distribution's :class:`~.lock.CacheLock`.  Archives are
extracted into ``rootfs.partial`` and renamed to ``rootfs`` once complete;
a present ``rootfs`` is reused as-is, with no freshness or checksum check.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

import httpx

from .archive import SNAPSHOT_NAME, ArchiveRef, download, make_client, resolve_latest, snapshot_url
from .config import Settings
from .errors import DownloadError
from .lock import CacheLock
from .output import Output

logger = logging.getLogger(__name__)

# Where the package-metadata snapshot lands inside the tree.  The
# snapshot archive carries a top-level ``portage/`` directory.
SNAPSHOT_PARENT = Path("usr")
SNAPSHOT_DIR = SNAPSHOT_PARENT / "portage"


# Extraction happens here and the result is renamed into place, so an
# interrupted extraction never looks like a populated cache.
STAGING_SUFFIX = ".partial"


def extract_archive(archive: Path, dest: Path) -> None:
    """Extract *archive* into *dest* preserving permissions and owners.

    Raises:
        DownloadError: If ``tar`` cannot be run or exits non-zero.
    """
    try:
        result = subprocess.run(
            ["tar", "-xpf", str(archive), "--numeric-owner", "-C", str(dest)],
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise DownloadError(f"Failed to extract {archive.name}: {e}") from e
    if result.returncode != 0:
        raise DownloadError(
            f"Failed to extract {archive.name}: {result.stderr.strip()}"
        )


def remove_tree(path: Path) -> None:
    """Delete *path* recursively if present.

    Raises:
        DownloadError: If the tree cannot be removed.
    """
    if not (path.exists() or path.is_symlink()):
        return
    logger.debug("Removing %s", path)
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise DownloadError(f"Failed to remove {path}: {e}") from e


class CacheManager:
    """Owns the cache directory tree of one distribution."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        progress: Output | None = None,
    ):
        """Initialize the cache manager.

        Args:
            settings: Provisioner settings.
            client: HTTP client to use.  When omitted one is created
                per download session and closed afterwards.
            progress: Optional reporter for user-facing messages.
        """
        self._settings = settings
        self._client = client
        self._progress = progress

    @property
    def root(self) -> Path:
        return self._settings.cache_root

    @property
    def tree(self) -> Path:
        return self._settings.cached_tree

    @property
    def staging(self) -> Path:
        return self.tree.with_name(self.tree.name + STAGING_SUFFIX)

    def lock(self) -> CacheLock:
        """Return a new (unacquired) lock for this distribution's cache."""
        return CacheLock(self._settings.lock_path)

    def is_populated(self) -> bool:
        return self.tree.is_dir()

    def _info(self, msg: str) -> None:
        if self._progress:
            self._progress.info(msg)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def ensure(self) -> Path:
        """Make sure the extracted tree exists, downloading on a miss.

        Returns:
            Path of the extracted tree.

        Raises:
            CacheBusy: If another process holds the lock.
            ResolutionError: If the newest archive cannot be resolved.
            DownloadError: If a download, extraction or cleanup fails.
        """
        with self.lock():
            return self.populate()

    def populate(self) -> Path:
        """Body of :meth:`ensure`.  The caller must hold :meth:`lock`."""
        if self.is_populated():
            logger.debug("Cache hit: %s", self.tree)
            self._info(f"Using cached tree {self.tree}")
            return self.tree

        self._info(f"Cache miss, fetching {self._settings.distribution} stage archive")
        if self._client is not None:
            self._fetch(self._client)
        else:
            with make_client(self._settings) as client:
                self._fetch(client)
        return self.tree

    def _fetch(self, client: httpx.Client) -> None:
        ref = resolve_latest(self._settings, client)
        self._info(f"Latest archive: {ref.filename}")
        archive = download(client, ref.url, self.root / ref.filename)

        staging = self.staging
        # Leftovers from an interrupted run.
        remove_tree(staging)
        self._extract_stage(ref, archive, staging)

        self._info("Fetching package snapshot")
        snapshot = download(client, snapshot_url(self._settings), self.root / SNAPSHOT_NAME)
        self._extract_snapshot(snapshot, staging)

        try:
            staging.rename(self.tree)
        except OSError as e:
            raise DownloadError(f"Failed to move {staging} to {self.tree}: {e}") from e

    def _extract_stage(self, ref: ArchiveRef, archive: Path, dest: Path) -> None:
        try:
            dest.mkdir(parents=True)
        except OSError as e:
            raise DownloadError(f"Failed to create {dest}: {e}") from e
        self._info(f"Extracting {ref.filename}")
        extract_archive(archive, dest)

    def _extract_snapshot(self, snapshot: Path, tree: Path) -> None:
        remove_tree(tree / SNAPSHOT_DIR)
        parent = tree / SNAPSHOT_PARENT
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"Failed to create {parent}: {e}") from e
        self._info(f"Extracting {snapshot.name}")
        extract_archive(snapshot, parent)

    def purge(self) -> bool:
        """Remove the whole cache root under the lock.

        Returns:
            True if something was removed.

        Raises:
            CacheBusy: If another process holds the lock.
            DownloadError: If the cache root cannot be removed.
        """
        with self.lock():
            if not self.root.exists():
                return False
            remove_tree(self.root)
            return True
