# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Context dataclasses passed through pipeline steps."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .instance import InstanceSpec
from .output import Output


@dataclass
class CustomizeContext:
    """Context passed through the filesystem customization pipeline.

    Every step edits files below ``instance.root``.  Steps must be
    idempotent: the pipeline is re-run on existing instances.
    """

    instance: InstanceSpec
    settings: Settings
    password: str
    progress: Output | None

    # Set by the descriptor step
    descriptor_path: Path | None = None

    @property
    def root(self) -> Path:
        return self.instance.root

    def path(self, rel: str | Path) -> Path:
        """Absolute path of *rel* inside the instance root."""
        return self.root / rel

    def info(self, msg: str) -> None:
        if self.progress:
            self.progress.info(msg)

    def dim(self, msg: str) -> None:
        if self.progress:
            self.progress.dim(msg)

    def warning(self, msg: str) -> None:
        if self.progress:
            self.progress.warning(msg)
