# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Provisioner settings and layered config file loading.

Configuration is read from (highest to lowest priority):
  1. ~/.config/lxcstage/lxcstage.conf  (user)
  2. /etc/lxcstage/lxcstage.conf       (system)
  3. /usr/lib/lxcstage/lxcstage.conf   (package defaults)

Each file is INI formatted with a single ``[lxcstage]`` section.  Keys
mirror the field names of :class:`Settings`.  Missing keys keep their
built-in defaults.

The result is a frozen :class:`Settings` instance which is passed
explicitly to every component; nothing reads process-wide state after
loading.
"""

from __future__ import annotations

import configparser
import enum
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

logger = logging.getLogger(__name__)

SECTION = "lxcstage"

CONFIG_PATHS = (
    Path("/usr/lib/lxcstage/lxcstage.conf"),
    Path("/etc/lxcstage/lxcstage.conf"),
)
USER_CONFIG_RELPATH = Path(".config/lxcstage/lxcstage.conf")


class Arch(enum.Enum):
    """Supported stage archive architectures."""

    X86 = "x86"
    AMD64 = "amd64"

    @property
    def default_variant(self) -> str:
        """Sub-architecture used when none is configured."""
        return "i686" if self is Arch.X86 else "amd64"


def _kernel_release() -> str:
    return os.uname().release


@dataclass(frozen=True)
class Settings:
    """Immutable provisioner settings."""

    distribution: str = "gentoo"
    arch: Arch = Arch.AMD64
    subarch: str | None = None
    mirror: str = "http://distfiles.gentoo.org"
    cache_dir: Path = Path("/var/cache/lxc")
    lock_dir: Path = Path("/var/lock")
    descriptor_dir: Path = Path(".")
    instances_dir: Path = Path(".")
    resolv_conf: Path = Path("/etc/resolv.conf")
    kernel_release: str = field(default_factory=_kernel_release)
    bridge: str = "br0"
    ttys: int = 1
    http_timeout: float = 10.0
    http_retries: int = 10
    sshd: bool = False

    @property
    def variant(self) -> str:
        """The sub-architecture, falling back to the architecture default."""
        return self.subarch or self.arch.default_variant

    @property
    def cache_root(self) -> Path:
        return self.cache_dir / self.distribution

    @property
    def lock_path(self) -> Path:
        return self.lock_dir / f"lxcstage-{self.distribution}.lock"

    @property
    def cached_tree(self) -> Path:
        return self.cache_root / "rootfs"


class ConfigError(Exception):
    """Raised when a config file holds an invalid value."""


def _coerce(name: str, raw: str, current: object) -> object:
    """Convert a raw INI string to the type of the field's current value."""
    try:
        if isinstance(current, bool):
            return configparser.ConfigParser.BOOLEAN_STATES[raw.strip().lower()]
        if isinstance(current, Arch):
            return Arch(raw.strip())
        if isinstance(current, Path):
            return Path(raw.strip()).expanduser()
        if isinstance(current, int):
            return int(raw)
        if isinstance(current, float):
            return float(raw)
    except (KeyError, ValueError) as e:
        raise ConfigError(f"Invalid value for '{name}': {raw!r}") from e
    if name == "subarch":
        return raw.strip() or None
    return raw.strip()


def apply_config_file(settings: Settings, path: Path) -> Settings:
    """Return *settings* overridden by the ``[lxcstage]`` section of *path*."""
    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")
    if not parser.has_section(SECTION):
        return settings

    known = {f.name for f in fields(Settings)}
    overrides: dict[str, object] = {}
    for key, raw in parser.items(SECTION):
        if key not in known:
            raise ConfigError(f"Unknown config key in {path}: {key}")
        overrides[key] = _coerce(key, raw, getattr(settings, key))

    logger.debug("Loaded %d setting(s) from %s", len(overrides), path)
    return replace(settings, **overrides)  # type: ignore[arg-type]


def load_config(home_dir: str | None = None, paths: tuple[Path, ...] | None = None) -> Settings:
    """Load settings from the layered config files.

    Args:
        home_dir: Home directory used to locate the user config file.
            Defaults to the caller's home.
        paths: Explicit list of files to read, lowest priority first.
            Overrides the default search path when given.

    Returns:
        Frozen settings with every layer applied.
    """
    if paths is None:
        home = Path(home_dir) if home_dir else Path.home()
        paths = (*CONFIG_PATHS, home / USER_CONFIG_RELPATH)

    settings = Settings()
    for path in paths:
        if path.is_file():
            settings = apply_config_file(settings, path)
    return settings
