# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Helpers shared by customization steps.

Every helper raises :class:`~lxcstage.errors.CustomizationError` with
the calling step's name, so a failure always says which edit broke.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from ..contexts import CustomizeContext
from ..errors import CustomizationError

logger = logging.getLogger(__name__)


def require_file(ctx: CustomizeContext, step: str, rel: str) -> Path:
    path = ctx.path(rel)
    if not path.is_file():
        raise CustomizationError(step, f"expected file /{rel} is missing")
    return path


def require_dir(ctx: CustomizeContext, step: str, rel: str) -> Path:
    path = ctx.path(rel)
    if not path.is_dir():
        raise CustomizationError(step, f"expected directory /{rel} is missing")
    return path


def write_file(ctx: CustomizeContext, step: str, rel: str, content: str, mode: int | None = None) -> Path:
    """Overwrite ``/rel`` inside the instance; its directory must exist."""
    path = ctx.path(rel)
    if not path.parent.is_dir():
        raise CustomizationError(step, f"expected directory /{path.parent.relative_to(ctx.root)} is missing")
    try:
        path.write_text(content, encoding="utf-8")
        if mode is not None:
            path.chmod(mode)
    except OSError as e:
        raise CustomizationError(step, f"cannot write /{rel}: {e}") from e
    return path


def sub_file(
    ctx: CustomizeContext,
    step: str,
    rel: str,
    pattern: str,
    repl: str,
    *,
    flags: int = re.MULTILINE,
) -> int:
    """Apply a regex substitution to ``/rel`` in place.

    Returns:
        Number of substitutions made (zero on an already-edited file).
    """
    path = require_file(ctx, step, rel)
    text = path.read_text(encoding="utf-8")
    new_text, count = re.subn(pattern, repl, text, flags=flags)
    if new_text != text:
        path.write_text(new_text, encoding="utf-8")
    return count


def run_chroot(
    ctx: CustomizeContext,
    step: str,
    *args: str,
    input: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command chrooted into the instance root and check its status."""
    cmd = ["chroot", str(ctx.root), *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            input=input,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise CustomizationError(step, f"cannot run {args[0]}: {e}") from e
    if result.returncode != 0:
        raise CustomizationError(
            step,
            f"{args[0]} exited with status {result.returncode}: {result.stderr.strip()}",
        )
    return result
