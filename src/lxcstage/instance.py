# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container instance parameters and root filesystem materialization."""

from __future__ import annotations

import configparser
import enum
import ipaddress
import logging
import subprocess
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import Settings
from .errors import CopyError, CredentialMismatch

logger = logging.getLogger(__name__)

# Section of a ``-f`` parameter file holding instance parameters.
PARAMS_SECTION = "container"


class InstanceState(enum.Enum):
    """Whether the instance root already existed when creation started."""

    FRESH = "fresh"
    EXISTING = "existing"


class InstanceSpec(BaseModel):
    """Validated, immutable parameters of one container instance.

    Built once by the front-end (prompts or a parameter file) and then
    only read by the pipeline.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$", max_length=64)
    hostname: str = Field(pattern=r"^[A-Za-z0-9][A-Za-z0-9.-]*$", max_length=64)
    ipv4: str
    gateway: str
    root: Path

    @model_validator(mode="before")
    @classmethod
    def _default_hostname(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("hostname"):
            return {**data, "hostname": data.get("name")}
        return data

    @field_validator("ipv4")
    @classmethod
    def _check_ipv4(cls, value: str) -> str:
        # Accepts "10.0.0.5" as well as "10.0.0.5/24".
        ipaddress.IPv4Interface(value)
        return value

    @field_validator("gateway")
    @classmethod
    def _check_gateway(cls, value: str) -> str:
        ipaddress.IPv4Address(value)
        return value

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        name: str,
        ipv4: str,
        gateway: str,
        hostname: str | None = None,
    ) -> InstanceSpec:
        """Build a spec whose root lives in ``settings.instances_dir``."""
        return cls.model_validate({
            "name": name,
            "hostname": hostname,
            "ipv4": ipv4,
            "gateway": gateway,
            "root": settings.instances_dir / name,
        })

    def descriptor_path(self, settings: Settings) -> Path:
        return settings.descriptor_dir / f"{self.hostname}.conf"


def load_params_file(path: Path) -> dict[str, str]:
    """Read instance parameters from the ``[container]`` section of *path*.

    Only the keys ``name``, ``hostname``, ``ipv4`` and ``gateway`` are
    returned; the root password is never read from a file.
    """
    parser = configparser.ConfigParser()
    if not parser.read(path, encoding="utf-8"):
        raise FileNotFoundError(f"Parameter file not found: {path}")
    if not parser.has_section(PARAMS_SECTION):
        raise ValueError(f"{path} has no [{PARAMS_SECTION}] section")
    section = parser[PARAMS_SECTION]
    return {
        key: section[key]
        for key in ("name", "hostname", "ipv4", "gateway")
        if section.get(key)
    }


def confirm_credential(password: str, confirmation: str) -> str:
    """Return *password* if it equals *confirmation* exactly.

    Raises:
        CredentialMismatch: If the two strings differ.
    """
    if password != confirmation:
        raise CredentialMismatch("Root passwords do not match")
    return password


def instance_state(root: Path) -> InstanceState:
    """Tag *root* as fresh (absent) or existing."""
    if root.exists() or root.is_symlink():
        return InstanceState.EXISTING
    return InstanceState.FRESH


def materialize(cached_tree: Path, instance_root: Path) -> None:
    """Copy the cached tree into a new instance root with ``cp -a``.

    The caller checks that *instance_root* does not exist yet.

    Raises:
        CopyError: If the source is missing or the copy fails.
    """
    if not cached_tree.is_dir():
        raise CopyError(f"Cached tree not found: {cached_tree}")

    logger.debug("Copying %s -> %s", cached_tree, instance_root)
    try:
        instance_root.parent.mkdir(parents=True, exist_ok=True)
        result = subprocess.run(
            ["cp", "-a", str(cached_tree), str(instance_root)],
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise CopyError(f"Failed to copy {cached_tree} to {instance_root}: {e}") from e
    if result.returncode != 0:
        raise CopyError(
            f"Failed to copy {cached_tree} to {instance_root}: {result.stderr.strip()}"
        )
