# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""LXC runtime descriptor (``<hostname>.conf``) generation.

The supervisor parses this file line by line, so the order and the
literal policy values below are part of the contract.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings
from .instance import InstanceSpec

logger = logging.getLogger(__name__)

NETWORK_TYPE = "veth"
NETWORK_FLAGS = "up"
PTS_MAX = 1024

CAP_DROP = ("sys_module", "mac_admin", "mac_override", "sys_time")

# Deny everything, then allow the devices a minimal guest needs.
DEVICE_ALLOWLIST: tuple[tuple[str, str], ...] = (
    ("deny", "a"),
    # /dev/null, /dev/zero
    ("allow", "c 1:3 rwm"),
    ("allow", "c 1:5 rwm"),
    # /dev/random, /dev/urandom
    ("allow", "c 1:8 rwm"),
    ("allow", "c 1:9 rwm"),
    # /dev/ptmx, /dev/pts/*
    ("allow", "c 5:2 rwm"),
    ("allow", "c 136:* rwm"),
    # /dev/tty0, /dev/tty1
    ("allow", "c 4:0 rwm"),
    ("allow", "c 4:1 rwm"),
)


def device_policy_lines() -> list[str]:
    """The fixed device allowlist block, in order."""
    return [f"lxc.cgroup.devices.{verb} = {rule}" for verb, rule in DEVICE_ALLOWLIST]


def render(instance: InstanceSpec, settings: Settings) -> str:
    """Render the descriptor text for *instance*."""
    lines = [
        f"lxc.utsname = {instance.hostname}",
        f"lxc.network.type = {NETWORK_TYPE}",
        f"lxc.network.flags = {NETWORK_FLAGS}",
        f"lxc.network.link = {settings.bridge}",
        f"lxc.network.ipv4 = {instance.ipv4}",
        f"lxc.rootfs = {instance.root.resolve()}",
        f"lxc.tty = {settings.ttys}",
        f"lxc.pts = {PTS_MAX}",
        f"lxc.cap.drop = {' '.join(CAP_DROP)}",
        *device_policy_lines(),
    ]
    return "\n".join(lines) + "\n"


def emit(instance: InstanceSpec, settings: Settings) -> Path:
    """Write the descriptor for *instance* and return its path."""
    path = instance.descriptor_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render(instance, settings), encoding="utf-8")
    logger.debug("Wrote %s", path)
    return path
