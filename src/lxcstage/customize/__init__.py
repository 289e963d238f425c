# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Filesystem customization pipeline: in-place edits of an instance root.

Importing this package registers all steps with the pipeline.
"""

from ..pipeline import Pipeline
from ..contexts import CustomizeContext

customize_pipeline = Pipeline[CustomizeContext]("customize")

# Import step modules so their decorators register with the pipeline.
from . import descriptor as _  # noqa: F401, E402
from . import inittab as _  # noqa: F401, E402
from . import hostname as _  # noqa: F401, E402
from . import fstab as _  # noqa: F401, E402
from . import network as _  # noqa: F401, E402
from . import login_service as _  # noqa: F401, E402
from . import init_system as _  # noqa: F401, E402
from . import credential as _  # noqa: F401, E402
