# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Customization step: optional SSH login service.

Disabled unless ``sshd = yes`` is set in the config.  The policy written
here permits root login with an empty password.  It is meant for
throwaway guests on a private bridge and is not secure.
"""

from ..contexts import CustomizeContext
from .helpers import require_file, run_chroot, write_file
from . import customize_pipeline

SSHD_CONFIG = "etc/ssh/sshd_config"

SSHD_CONFIG_CONTENT = """\
Port 22
ListenAddress 0.0.0.0
Protocol 2
HostKey /etc/ssh/ssh_host_rsa_key
HostKey /etc/ssh/ssh_host_ed25519_key
SyslogFacility AUTH
LogLevel INFO
LoginGraceTime 30
PermitRootLogin yes
StrictModes yes
PubkeyAuthentication yes
PasswordAuthentication yes
PermitEmptyPasswords yes
ChallengeResponseAuthentication no
UsePAM yes
X11Forwarding no
PrintMotd no
Subsystem sftp /usr/lib/misc/sftp-server
"""


@customize_pipeline.step(order=600)
def configure_login_service(ctx: CustomizeContext) -> None:
    """Enable sshd at the default runlevel with a permissive config."""
    if not ctx.settings.sshd:
        return

    step = "configure_login_service"
    require_file(ctx, step, "etc/init.d/sshd")
    ctx.warning("Enabling sshd with root login and empty passwords permitted")

    # rc-update refuses to add a service twice, so check the link first.
    if not ctx.path("etc/runlevels/default/sshd").is_symlink():
        run_chroot(ctx, step, "rc-update", "add", "sshd", "default")
    run_chroot(ctx, step, "chpasswd", input=f"root:{ctx.password}\n")
    write_file(ctx, step, SSHD_CONFIG, SSHD_CONFIG_CONTENT, mode=0o600)
