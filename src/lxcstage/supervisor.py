# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Client for the LXC supervisor command-line tools.

Only registration and destruction are driven from here; starting and
attaching to a container are left to the operator, so those are only
exposed as command lines to print.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .errors import SupervisorError

logger = logging.getLogger(__name__)


class LxcSupervisor:
    """Runs ``lxc-*`` commands for named containers."""

    def __init__(self, prefix: str = "lxc"):
        self._prefix = prefix

    def _tool(self, action: str) -> str:
        return f"{self._prefix}-{action}"

    def _run(self, action: str, *args: str) -> subprocess.CompletedProcess[str]:
        """Run an ``lxc-<action>`` command and raise on failure."""
        cmd = [self._tool(action), *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise SupervisorError(f"Cannot run {cmd[0]}: {e}") from e
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            raise SupervisorError(
                f"{cmd[0]} failed with status {result.returncode}: {detail}",
                returncode=result.returncode,
            )
        return result

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def create(self, name: str, descriptor: Path) -> None:
        """Register container *name* from a runtime descriptor."""
        self._run("create", "-n", name, "-f", str(descriptor))

    def destroy(self, name: str) -> None:
        """Remove container *name* from the supervisor."""
        self._run("destroy", "-n", name)

    def start_command(self, name: str) -> list[str]:
        return [self._tool("start"), "-n", name, "-d"]

    def console_command(self, name: str) -> list[str]:
        return [self._tool("console"), "-n", name]
