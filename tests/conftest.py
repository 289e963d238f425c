# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Shared fixtures: a fake stage tree, a fake mirror and a command recorder."""

from __future__ import annotations

import io
import subprocess
import tarfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from lxcstage.config import Settings

MIRROR = "http://mirror.test"
LISTING_URL = f"{MIRROR}/releases/amd64/autobuilds/current-stage3-amd64/"
SNAPSHOT_URL = f"{MIRROR}/snapshots/portage-latest.tar.xz"
NEWEST = "stage3-amd64-20240312.tar.xz"

INITTAB = """\
id:3:initdefault:
si::sysinit:/sbin/openrc sysinit
c1:12345:respawn:/sbin/agetty 38400 tty1 linux
c2:2345:respawn:/sbin/agetty 38400 tty2 linux
c3:2345:respawn:/sbin/agetty 38400 tty3 linux
c4:2345:respawn:/sbin/agetty 38400 tty4 linux
"""

CLOCK_SCRIPT = """\
#!/sbin/openrc-run
start() {
\tif [ "$(date +%s)" -lt 0 ]; then
\t\tewarn "clock skew detected"
\tfi
}
"""

BOOT_SERVICES = (
    "urandom", "hostname", "keymaps", "rmnologin", "checkfs",
    "checkroot", "consolefont", "bootmisc", "localmount",
)


def build_stage_tree(root: Path) -> Path:
    """Lay out the parts of a stage3 tree that customization touches."""
    etc = root / "etc"
    for d in ("conf.d", "init.d", "runlevels/boot", "runlevels/default", "ssh"):
        (etc / d).mkdir(parents=True, exist_ok=True)
    (root / "lib/modules").mkdir(parents=True, exist_ok=True)
    (root / "bin").mkdir(exist_ok=True)

    (etc / "inittab").write_text(INITTAB)
    (etc / "fstab").write_text("/dev/BOOT  /boot  ext2  noauto,noatime  1 2\n")
    (etc / "rc.conf").write_text('#rc_parallel="NO"\n#rc_devices="YES"\n')
    (etc / "conf.d/hostname").write_text('hostname="localhost"\n')
    (etc / "conf.d/clock").write_text('clock="UTC"\nTIMEZONE="Factory"\n')
    (etc / "ssh/sshd_config").write_text("PermitRootLogin no\n")
    (etc / "resolv.conf").write_text("")
    for script, body in (
        ("udev", "#!/sbin/openrc-run\n"),
        ("udev-trigger", "#!/sbin/openrc-run\n"),
        ("clock", CLOCK_SCRIPT),
        ("sshd", "#!/sbin/openrc-run\n"),
    ):
        path = etc / "init.d" / script
        path.write_text(body)
        path.chmod(0o755)
    for service in BOOT_SERVICES:
        (etc / "runlevels/boot" / service).symlink_to(f"/etc/init.d/{service}")
    sh = root / "bin/sh"
    sh.write_text("#!/bin/false\n")
    sh.chmod(0o755)
    return root


def tar_bytes(src: Path, arcname: str = ".") -> bytes:
    """Pack *src* as an uncompressed tar; GNU tar detects this on extract."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        tar.add(src, arcname=arcname)
    return buf.getvalue()


@dataclass
class FakeMirror:
    """A mirror served through ``httpx.MockTransport``."""

    stage: bytes
    snapshot: bytes
    listing: str = (
        f'<a href="stage3-amd64-20240101.tar.xz">stage3-amd64-20240101.tar.xz</a>\n'
        f'<a href="{NEWEST}">{NEWEST}</a>\n'
        f'<a href="{NEWEST}.DIGESTS">{NEWEST}.DIGESTS</a>\n'
    )
    requests: list[str] = field(default_factory=lambda: list[str]())
    on_request: Callable[[httpx.Request], None] | None = None
    status: dict[str, int] = field(default_factory=lambda: dict[str, int]())

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if self.on_request is not None:
            self.on_request(request)
        if url in self.status:
            return httpx.Response(self.status[url])
        if url == LISTING_URL:
            return httpx.Response(200, text=self.listing)
        if url == LISTING_URL + NEWEST:
            return httpx.Response(200, content=self.stage)
        if url == SNAPSHOT_URL:
            return httpx.Response(200, content=self.snapshot)
        return httpx.Response(404)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@dataclass
class CommandRecorder:
    """Stands in for ``subprocess.run`` for ``chroot`` and ``lxc-*`` only.

    Everything else (``tar``, ``cp``) runs for real.
    """

    real: Callable[..., Any]
    calls: list[list[str]] = field(default_factory=lambda: list[list[str]]())
    inputs: list[str | None] = field(default_factory=lambda: list[str | None]())
    fail: dict[str, int] = field(default_factory=lambda: dict[str, int]())

    def __call__(self, cmd: list[str], *args: Any, **kwargs: Any) -> Any:
        if cmd[0] == "chroot":
            key = cmd[2]
        elif cmd[0].startswith("lxc-"):
            key = cmd[0]
        else:
            return self.real(cmd, *args, **kwargs)
        self.calls.append(list(cmd))
        self.inputs.append(kwargs.get("input"))
        rc = self.fail.get(key, 0)
        return subprocess.CompletedProcess(cmd, rc, stdout="", stderr="boom" if rc else "")

    def names(self) -> list[str]:
        return [c[2] if c[0] == "chroot" else c[0] for c in self.calls]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    resolv = tmp_path / "host-resolv.conf"
    resolv.write_text(
        "# Generated by NetworkManager\n"
        "search example.org\n"
        "nameserver 192.0.2.53\n"
        "options edns0\n"
    )
    return Settings(
        mirror=MIRROR,
        cache_dir=tmp_path / "cache",
        lock_dir=tmp_path / "lock",
        descriptor_dir=tmp_path / "conf",
        instances_dir=tmp_path / "instances",
        resolv_conf=resolv,
        kernel_release="6.6.0-test",
    )


@pytest.fixture
def stage_tree(tmp_path: Path) -> Path:
    return build_stage_tree(tmp_path / "stage")


@pytest.fixture
def mirror(tmp_path: Path, stage_tree: Path) -> FakeMirror:
    snap = tmp_path / "snapshot" / "portage"
    (snap / "profiles").mkdir(parents=True)
    (snap / "profiles/repo_name").write_text("gentoo\n")
    return FakeMirror(
        stage=tar_bytes(stage_tree),
        snapshot=tar_bytes(snap, arcname="portage"),
    )


@pytest.fixture
def commands(monkeypatch: pytest.MonkeyPatch) -> CommandRecorder:
    recorder = CommandRecorder(real=subprocess.run)
    monkeypatch.setattr(subprocess, "run", recorder)
    return recorder
