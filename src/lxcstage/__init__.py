# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""lxcstage - provision minimal Gentoo guests for LXC from stage archives."""

__version__ = "0.1.0"
