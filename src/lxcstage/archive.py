# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Stage archive lookup and download over HTTP.

The mirror is treated as an opaque versioned blob store: a directory
listing is fetched, archive names are picked out of it with a regular
expression, and the newest one (by lexicographic order of its date
stamp) wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import httpx

from .config import Arch, Settings
from .errors import DownloadError, ResolutionError

logger = logging.getLogger(__name__)

SNAPSHOT_NAME = "portage-latest.tar.xz"

_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class ArchiveRef:
    """A resolved stage archive on the mirror."""

    arch: Arch
    variant: str
    filename: str
    version: str
    url: str


def make_client(settings: Settings, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Create the HTTP client used for listing and downloads.

    Connection failures are retried by the transport itself; the
    pipeline never loops on its own.
    """
    if transport is None:
        transport = httpx.HTTPTransport(retries=settings.http_retries)
    return httpx.Client(
        transport=transport,
        timeout=settings.http_timeout,
        follow_redirects=True,
    )


def listing_url(settings: Settings) -> str:
    """URL of the autobuild directory holding the current stage archives."""
    return (
        f"{settings.mirror.rstrip('/')}/releases/{settings.arch.value}"
        f"/autobuilds/current-stage3-{settings.variant}/"
    )


def snapshot_url(settings: Settings) -> str:
    return f"{settings.mirror.rstrip('/')}/snapshots/{SNAPSHOT_NAME}"


def archive_pattern(variant: str) -> re.Pattern[str]:
    """Pattern matching ``stage3-<variant>-<stamp>.tar.<ext>`` names.

    The stamp is eight digits, optionally followed by a ``THHMMSSZ``
    time of day as newer autobuilds publish.
    """
    return re.compile(
        rf"stage3-{re.escape(variant)}-(\d{{8}}(?:T\d{{6}}Z)?)\.tar\.(?:bz2|xz)"
    )


def newest_archive(listing: str, variant: str) -> tuple[str, str]:
    """Return ``(filename, version)`` of the newest archive in *listing*.

    Raises:
        ResolutionError: If no archive name matches.
    """
    found = {m.group(0): m.group(1) for m in archive_pattern(variant).finditer(listing)}
    if not found:
        raise ResolutionError(f"No stage3-{variant} archive found in listing")
    newest = max(found)
    return newest, found[newest]


def resolve_latest(settings: Settings, client: httpx.Client) -> ArchiveRef:
    """Resolve the newest stage archive for the configured architecture.

    Args:
        settings: Provisioner settings (mirror, arch, sub-architecture).
        client: HTTP client from :func:`make_client`.

    Returns:
        The resolved archive reference.

    Raises:
        ResolutionError: If the listing is unreachable or empty.
    """
    url = listing_url(settings)
    logger.debug("Fetching archive listing %s", url)
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise ResolutionError(f"Could not fetch {url}: {e}") from e

    filename, version = newest_archive(response.text, settings.variant)
    logger.debug("Newest archive: %s", filename)
    return ArchiveRef(
        arch=settings.arch,
        variant=settings.variant,
        filename=filename,
        version=version,
        url=url + filename,
    )


def download(client: httpx.Client, url: str, dest: Path) -> Path:
    """Stream *url* into *dest*.

    A partially written file is left in place on failure; the next
    download overwrites it.

    Raises:
        DownloadError: On any transport error, non-2xx response or
            local write failure.
    """
    logger.debug("Downloading %s -> %s", url, dest)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
    except httpx.HTTPError as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise DownloadError(f"Failed to write {dest}: {e}") from e
    return dest
