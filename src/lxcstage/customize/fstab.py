# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: replace /etc/fstab with a container-sized table."""

from ..contexts import CustomizeContext
from .helpers import write_file
from . import customize_pipeline

FSTAB = "etc/fstab"

# The root entry only keeps boot scripts from complaining; the supervisor
# mounts the real root.
FSTAB_CONTENT = (
    "# required to prevent boot-time error display\n"
    "none    /         none    defaults  0 0\n"
    "tmpfs   /dev/shm  tmpfs   defaults  0 0\n"
)


@customize_pipeline.step(order=400)
def write_fstab(ctx: CustomizeContext) -> None:
    write_file(ctx, "write_fstab", FSTAB, FSTAB_CONTENT)
