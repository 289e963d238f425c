# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: write the runtime descriptor before editing the tree."""

from ..contexts import CustomizeContext
from ..descriptor import emit
from . import customize_pipeline


@customize_pipeline.step(order=100)
def write_runtime_descriptor(ctx: CustomizeContext) -> None:
    """Emit ``<hostname>.conf`` for the supervisor."""
    ctx.descriptor_path = emit(ctx.instance, ctx.settings)
    ctx.dim(f"Wrote runtime descriptor {ctx.descriptor_path}")
