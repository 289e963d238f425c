# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: keep only the first getty in /etc/inittab."""

from ..contexts import CustomizeContext
from .helpers import sub_file
from . import customize_pipeline

INITTAB = "etc/inittab"


@customize_pipeline.step(order=200)
def disable_extra_terminals(ctx: CustomizeContext) -> None:
    """Comment out the ``c2``..``c9`` terminal spawn entries.

    A container only gets the ttys its descriptor allocates; extra
    agetty entries would respawn forever.
    """
    count = sub_file(ctx, "disable_extra_terminals", INITTAB, r"^(c[2-9]:)", r"#\1")
    if count:
        ctx.dim(f"Disabled {count} terminal(s) in /{INITTAB}")
