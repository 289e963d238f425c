# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: prune boot-time services a container cannot use.

Must run after the hostname, fstab and network steps: it removes the
services that would otherwise reapply or check those settings.
"""

from __future__ import annotations

import re
import stat

from ..contexts import CustomizeContext
from ..errors import CustomizationError
from .helpers import require_dir, run_chroot, sub_file
from . import customize_pipeline

RC_CONF = "etc/rc.conf"
CLOCK_CONF = "etc/conf.d/clock"
CLOCK_SCRIPT = "etc/init.d/clock"
INIT_D = "etc/init.d"
BOOT_RUNLEVEL = "etc/runlevels/boot"

# urandom: entropy seeding, hostname: hostname-set, keymaps: keymap,
# rmnologin: login reset, checkfs/checkroot: filesystem checks,
# consolefont: console font.
BOOT_SERVICES_TO_REMOVE = (
    "urandom",
    "hostname",
    "keymaps",
    "rmnologin",
    "checkfs",
    "checkroot",
    "consolefont",
)

# The clock script warns about a skewed clock it is not allowed to fix
# inside a container.  Comparing against -1 never triggers.
CLOCK_WARNING_OPERAND = ("-lt 0", "-lt -1")

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


@customize_pipeline.step(order=700)
def prune_init_system(ctx: CustomizeContext) -> None:
    step = "prune_init_system"

    # Device management: static /dev, udev scripts not executable.
    sub_file(
        ctx, step, RC_CONF,
        r'^#?\s*rc_devices=.*$', 'rc_devices="static"',
    )
    rc_conf = ctx.path(RC_CONF)
    if 'rc_devices="static"' not in rc_conf.read_text(encoding="utf-8"):
        with open(rc_conf, "a", encoding="utf-8") as f:
            f.write('rc_devices="static"\n')

    init_d = require_dir(ctx, step, INIT_D)
    udev_scripts = sorted(init_d.glob("udev*"))
    if not udev_scripts:
        raise CustomizationError(step, f"no udev scripts found in /{INIT_D}")
    for script in udev_scripts:
        script.chmod(script.stat().st_mode & ~_EXEC_BITS)
    ctx.dim(f"Disabled {len(udev_scripts)} udev script(s)")

    # Boot services
    boot = require_dir(ctx, step, BOOT_RUNLEVEL)
    for service in BOOT_SERVICES_TO_REMOVE:
        link = boot / service
        if link.is_symlink() or link.exists():
            link.unlink()
            ctx.dim(f"Removed boot service {service}")

    # Factory timezone placeholder
    sub_file(ctx, step, CLOCK_CONF, r'^(TIMEZONE=)"Factory"', r'\1""')

    # Module dependency metadata for the host kernel
    release = ctx.settings.kernel_release
    ctx.path(f"lib/modules/{release}").mkdir(parents=True, exist_ok=True)
    run_chroot(ctx, step, "depmod", "-a", release)

    old, new = CLOCK_WARNING_OPERAND
    sub_file(ctx, step, CLOCK_SCRIPT, rf"(?<=\s){re.escape(old)}\b", new)
