"""
Upload orchestration.

Two stages: resolve() establishes the remote build configuration and the
version to upload, launch() starts the transfer as a task that nobody awaits.
The transfer reports its single terminal outcome through TransferSignals.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .archive import ArchiveHandle
from .models import BuildConfigVersion, RemoteBuildConfig, UploadPlan, VersionBuild
from .protocols import IRemoteClient, ProgressCallback
from .resolver import BuildConfigResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedUpload:
    """Output of the resolution stage; the only input launch() accepts."""
    config: RemoteBuildConfig
    version: BuildConfigVersion
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class TransferSignals:
    """
    Single-fire outcome slots of one transfer.

    Exactly one of ``completed`` (result None) or ``failed`` (result is the
    exception raised by the transfer) is resolved, once.
    """
    completed: asyncio.Future
    failed: asyncio.Future
    task: asyncio.Task


def build_version(config: RemoteBuildConfig, plan: UploadPlan) -> BuildConfigVersion:
    """Version record from the resolved identity plus every build of the plan."""
    return BuildConfigVersion(
        user=config.user,
        name=config.name,
        builds=tuple(
            VersionBuild(
                name=name,
                type=build.builder_type,
                artifact=build.has_artifact_post_processor,
            )
            for name, build in plan.builds.items()
        ),
    )


class UploadOrchestrator:
    """
    Coordinates resolution and the asynchronous transfer of one push.

    Usage:
        orchestrator = UploadOrchestrator(client)
        signals = await orchestrator.start(archive, plan)
        await CancellableWaiter(interrupt).wait(signals)
    """

    def __init__(
        self,
        client: IRemoteClient,
        resolver: Optional[BuildConfigResolver] = None,
    ):
        self._client = client
        self._resolver = resolver or BuildConfigResolver(client)
        self._tasks = set()

    async def resolve(self, plan: UploadPlan) -> ResolvedUpload:
        """Resolve the build configuration; raises before any transfer exists."""
        config = await self._resolver.resolve(plan.slug)
        version = build_version(config, plan)
        logger.debug(f"Prepared version for {version.slug} with {len(version.builds)} builds")
        return ResolvedUpload(config=config, version=version, metadata=plan.metadata)

    def launch(
        self,
        resolved: ResolvedUpload,
        archive: ArchiveHandle,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TransferSignals:
        """Start the transfer without waiting for it."""
        loop = asyncio.get_running_loop()
        completed = loop.create_future()
        failed = loop.create_future()
        task = asyncio.create_task(self._transfer(resolved, archive, completed, failed, progress_callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return TransferSignals(completed=completed, failed=failed, task=task)

    async def start(
        self,
        archive: ArchiveHandle,
        plan: UploadPlan,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TransferSignals:
        """Resolve, then launch. Returns as soon as the transfer is running."""
        resolved = await self.resolve(plan)
        return self.launch(resolved, archive, progress_callback)

    async def _transfer(
        self,
        resolved: ResolvedUpload,
        archive: ArchiveHandle,
        completed: asyncio.Future,
        failed: asyncio.Future,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        logger.info(f"Uploading {archive.size} bytes to {resolved.version.slug}")
        try:
            await self._client.upload_version(
                resolved.version,
                dict(resolved.metadata),
                archive.stream,
                archive.size,
                progress_callback,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug(f"Transfer to {resolved.version.slug} failed: {exc}")
            failed.set_result(exc)
            return

        completed.set_result(None)
