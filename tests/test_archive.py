"""Tests for archive resolution and download."""

from __future__ import annotations

import random
from pathlib import Path

import httpx
import pytest

from conftest import LISTING_URL, NEWEST, FakeMirror
from lxcstage.archive import download, listing_url, newest_archive, resolve_latest
from lxcstage.config import Arch, Settings
from lxcstage.errors import DownloadError, ResolutionError

TOKENS = [
    "stage3-amd64-20231105.tar.xz",
    "stage3-amd64-20240312.tar.xz",
    "stage3-amd64-20240101.tar.bz2",
    "stage3-amd64-20240229.tar.xz",
]


@pytest.mark.parametrize("seed", range(5))
def test_newest_archive_ignores_listing_order(seed: int) -> None:
    tokens = TOKENS * 2
    random.Random(seed).shuffle(tokens)
    listing = "\n".join(f'<a href="{t}">{t}</a>' for t in tokens)

    assert newest_archive(listing, "amd64") == ("stage3-amd64-20240312.tar.xz", "20240312")


def test_newest_archive_with_time_of_day_stamp() -> None:
    listing = (
        "stage3-amd64-openrc-20240310T170309Z.tar.xz\n"
        "stage3-amd64-openrc-20240310T090000Z.tar.xz\n"
    )
    filename, version = newest_archive(listing, "amd64-openrc")
    assert filename == "stage3-amd64-openrc-20240310T170309Z.tar.xz"
    assert version == "20240310T170309Z"


def test_newest_archive_skips_other_variants() -> None:
    listing = "stage3-i686-20250101.tar.xz stage3-amd64-20240101.tar.xz"
    assert newest_archive(listing, "amd64")[0] == "stage3-amd64-20240101.tar.xz"


@pytest.mark.parametrize("listing", ["", "<html><body>Index of /</body></html>", "stage3-amd64-2024.tar.xz"])
def test_newest_archive_empty_listing(listing: str) -> None:
    with pytest.raises(ResolutionError):
        newest_archive(listing, "amd64")


def test_listing_url_uses_arch_and_variant() -> None:
    settings = Settings(mirror="http://m.test/", arch=Arch.X86)
    assert listing_url(settings) == "http://m.test/releases/x86/autobuilds/current-stage3-i686/"

    settings = Settings(mirror="http://m.test", arch=Arch.X86, subarch="i486")
    assert listing_url(settings).endswith("/current-stage3-i486/")


def test_resolve_latest(settings: Settings, mirror: FakeMirror) -> None:
    with mirror.client() as client:
        ref = resolve_latest(settings, client)

    assert ref.filename == NEWEST
    assert ref.version == "20240312"
    assert ref.url == LISTING_URL + NEWEST
    assert ref.arch is Arch.AMD64
    assert mirror.requests == [LISTING_URL]


def test_resolve_latest_http_error(settings: Settings, mirror: FakeMirror) -> None:
    mirror.status[LISTING_URL] = 404
    with mirror.client() as client, pytest.raises(ResolutionError):
        resolve_latest(settings, client)


def test_resolve_latest_unreachable(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ResolutionError, match="Could not fetch"):
            resolve_latest(settings, client)


def test_download_writes_file(tmp_path: Path) -> None:
    payload = b"x" * 200_000

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=payload)

    dest = tmp_path / "cache" / "blob.tar.xz"
    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        assert download(client, "http://m.test/blob.tar.xz", dest) == dest
    assert dest.read_bytes() == payload


def test_download_error_status(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(DownloadError):
            download(client, "http://m.test/blob.tar.xz", tmp_path / "blob.tar.xz")
