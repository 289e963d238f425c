# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Command-line front-end."""

from .main import app, cli

__all__ = ["app", "cli"]
