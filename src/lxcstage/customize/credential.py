# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: set the guest's root password."""

from ..contexts import CustomizeContext
from .helpers import run_chroot
from . import customize_pipeline


@customize_pipeline.step(order=800)
def set_root_password(ctx: CustomizeContext) -> None:
    """Set root's password through ``chpasswd`` inside the instance.

    The password is fed on stdin so it never shows up in a process
    listing.
    """
    ctx.info("Setting root password")
    run_chroot(ctx, "set_root_password", "chpasswd", input=f"root:{ctx.password}\n")
