# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: set the guest hostname."""

from ..contexts import CustomizeContext
from .helpers import write_file
from . import customize_pipeline

HOSTNAME_FILE = "etc/conf.d/hostname"


@customize_pipeline.step(order=300)
def write_hostname(ctx: CustomizeContext) -> None:
    ctx.info(f"Hostname: {ctx.instance.hostname}")
    write_file(ctx, "write_hostname", HOSTNAME_FILE, f'hostname="{ctx.instance.hostname}"\n')
