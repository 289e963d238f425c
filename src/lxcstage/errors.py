# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Exception hierarchy for the provisioning pipeline.

Every error is terminal for the command that raised it.  The CLI maps
any :class:`ProvisionError` to a message naming the failed stage and
exit code 1.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for provisioning failures."""

    #: Stage name reported to the user when nothing more specific is known.
    default_stage = "provision"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage or self.default_stage


class CacheBusy(ProvisionError):
    """Another process holds the cache lock."""

    default_stage = "cache"


class ResolutionError(ProvisionError):
    """The remote listing was unreachable or had no matching archive."""

    default_stage = "resolve"


class DownloadError(ProvisionError):
    """An archive could not be downloaded or extracted."""

    default_stage = "download"


class CopyError(ProvisionError):
    """The cached tree could not be copied into the instance root."""

    default_stage = "materialize"


class CustomizationError(ProvisionError):
    """A filesystem customization step failed."""

    default_stage = "customize"

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step


class CredentialMismatch(ProvisionError):
    """The root password confirmation did not match."""

    default_stage = "prompt"


class SupervisorError(ProvisionError):
    """An LXC supervisor command failed."""

    default_stage = "supervisor"

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode
