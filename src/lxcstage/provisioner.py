# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container lifecycle operations.

:class:`Provisioner` drives creation as a sequence of stages (cache,
materialize, customize, register), destruction through the supervisor,
and cache purging.  It never prompts: the front-end hands it a
validated :class:`~.instance.InstanceSpec` and the two password
entries.

Any failure leaves the provisioner in :attr:`Stage.FAILED` and is
re-raised with the stage it happened in.  Nothing is rolled back; a
partially customized instance root stays on disk.
"""

from __future__ import annotations

import enum
import logging
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .cache import CacheManager
from .config import Settings
from .contexts import CustomizeContext
from .customize import customize_pipeline
from .errors import CopyError, CustomizationError, ProvisionError
from .instance import InstanceSpec, InstanceState, confirm_credential, instance_state, materialize
from .output import Output
from .supervisor import LxcSupervisor

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    """Provisioning state machine."""

    IDLE = "idle"
    PROMPTING = "prompting"
    CACHE_ENSURING = "cache"
    MATERIALIZING = "materialize"
    CUSTOMIZING = "customize"
    REGISTERING = "register"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CreateResult:
    """What ``create`` produced, for reporting to the operator."""

    name: str
    descriptor: Path
    state: InstanceState
    next_steps: list[str] = field(default_factory=lambda: list[str]())


class Provisioner:
    """Creates, destroys and purges containers for one distribution."""

    def __init__(
        self,
        settings: Settings,
        supervisor: LxcSupervisor | None = None,
        client: httpx.Client | None = None,
        progress: Output | None = None,
    ):
        """Initialize the provisioner.

        Args:
            settings: Provisioner settings.
            supervisor: LXC supervisor client.
            client: HTTP client for the mirror; created on demand if omitted.
            progress: Optional reporter for user-facing messages.
        """
        self._settings = settings
        self._supervisor = supervisor or LxcSupervisor()
        self._progress = progress
        self.cache = CacheManager(settings, client=client, progress=progress)
        self.stage = Stage.IDLE

    def _info(self, msg: str) -> None:
        if self._progress:
            self._progress.info(msg)

    def _success(self, msg: str) -> None:
        if self._progress:
            self._progress.success(msg)

    @contextmanager
    def _stage(self, stage: Stage) -> Iterator[None]:
        """Run a block as *stage*; failures move to FAILED."""
        self.stage = stage
        logger.debug("Stage: %s", stage.value)
        try:
            yield
        except ProvisionError as e:
            self.stage = Stage.FAILED
            e.stage = stage.value
            raise
        except BaseException:
            self.stage = Stage.FAILED
            raise

    # -------------------------------------------------------------------------
    # Container Lifecycle Operations
    # -------------------------------------------------------------------------

    def create(self, spec: InstanceSpec, password: str, confirmation: str) -> CreateResult:
        """Create and register a container.

        Args:
            spec: Validated instance parameters.
            password: Root password as first entered.
            confirmation: Root password as entered a second time.

        Returns:
            The descriptor path, instance state and follow-up commands.

        Raises:
            CredentialMismatch: Before any disk access if the entries differ.
            CacheBusy, ResolutionError, DownloadError, CopyError,
            CustomizationError, SupervisorError: From the failing stage.
        """
        with self._stage(Stage.PROMPTING):
            password = confirm_credential(password, confirmation)

        # The lock stays held until the copy is done so a concurrent
        # purge cannot pull the tree out from under cp.
        lock = self.cache.lock()
        with self._stage(Stage.CACHE_ENSURING):
            lock.acquire()
        try:
            with self._stage(Stage.CACHE_ENSURING):
                tree = self.cache.populate()

            with self._stage(Stage.MATERIALIZING):
                state = instance_state(spec.root)
                if state is InstanceState.FRESH:
                    self._info(f"Copying cached tree to {spec.root}")
                    materialize(tree, spec.root)
                else:
                    self._info(f"{spec.root} already exists, re-applying customization")
        finally:
            lock.release()

        with self._stage(Stage.CUSTOMIZING):
            ctx = CustomizeContext(
                instance=spec,
                settings=self._settings,
                password=password,
                progress=self._progress,
            )
            descriptor = self._customize(ctx)

        with self._stage(Stage.REGISTERING):
            self._info(f"Registering '{spec.name}' with the supervisor")
            self._supervisor.create(spec.name, descriptor)

        self.stage = Stage.DONE
        self._success(f"Container '{spec.name}' created")
        return CreateResult(
            name=spec.name,
            descriptor=descriptor,
            state=state,
            next_steps=[
                " ".join(self._supervisor.start_command(spec.name)),
                " ".join(self._supervisor.console_command(spec.name)),
            ],
        )

    def _customize(self, ctx: CustomizeContext) -> Path:
        """Run the customization pipeline, naming the step on any failure.

        Returns:
            Path of the runtime descriptor written by the pipeline.
        """
        for step in customize_pipeline.steps():
            try:
                step(ctx)
            except CustomizationError:
                raise
            except OSError as e:
                raise CustomizationError(step.__name__, str(e)) from e
        if ctx.descriptor_path is None:
            raise CustomizationError("write_runtime_descriptor", "no runtime descriptor was written")
        return ctx.descriptor_path

    def destroy(self, name: str, remove_rootfs: bool = False) -> bool:
        """Destroy a container through the supervisor.

        Args:
            name: Container name.
            remove_rootfs: Also delete the instance root after a
                successful destroy.

        Returns:
            True if the instance root was removed.

        Raises:
            SupervisorError: If the supervisor refuses; nothing is deleted.
            CopyError: If the instance root cannot be removed.
        """
        self._info(f"Destroying container '{name}'")
        self._supervisor.destroy(name)
        self._success(f"Container '{name}' destroyed")

        root = self._settings.instances_dir / name
        if not remove_rootfs or not root.exists():
            return False
        self._info(f"Removing {root}")
        try:
            shutil.rmtree(root)
        except OSError as e:
            raise CopyError(f"Failed to remove {root}: {e}") from e
        return True

    def purge(self) -> bool:
        """Remove the distribution cache.

        Raises:
            CacheBusy: If another process holds the cache lock.
        """
        removed = self.cache.purge()
        if removed:
            self._success(f"Removed cache {self.cache.root}")
        else:
            self._info(f"Cache {self.cache.root} is already empty")
        return removed
