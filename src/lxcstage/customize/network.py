# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: resolver and interface configuration."""

from __future__ import annotations

import re

from ..contexts import CustomizeContext
from ..errors import CustomizationError
from .helpers import write_file
from . import customize_pipeline

RESOLV_CONF = "etc/resolv.conf"
NET_CONF = "etc/conf.d/net"
INTERFACE = "eth0"

_RESOLVER_LINE = re.compile(r"^(search|nameserver)\b")


def net_conf(gateway: str) -> str:
    """Interface config for the guest's ``net.eth0`` service.

    The supervisor already assigns the address, so the interface is
    null-configured and only the default route is added.
    """
    return (
        f'config_{INTERFACE}="null"\n'
        f'routes_{INTERFACE}="default via {gateway}"\n'
    )


@customize_pipeline.step(order=500)
def configure_network(ctx: CustomizeContext) -> None:
    """Copy host resolver lines and write the interface descriptor."""
    step = "configure_network"
    host_resolv = ctx.settings.resolv_conf
    try:
        host_lines = host_resolv.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise CustomizationError(step, f"cannot read host resolver {host_resolv}: {e}") from e

    resolver = [line for line in host_lines if _RESOLVER_LINE.match(line)]
    if not resolver:
        ctx.warning(f"No search/nameserver lines in {host_resolv}")

    path = ctx.path(RESOLV_CONF)
    # Stage archives may ship resolv.conf as a dangling symlink.
    if path.is_symlink():
        path.unlink()
    write_file(ctx, step, RESOLV_CONF, "".join(f"{line}\n" for line in resolver))

    write_file(ctx, step, NET_CONF, net_conf(ctx.instance.gateway))
    ctx.dim(f"Default route via {ctx.instance.gateway}")
