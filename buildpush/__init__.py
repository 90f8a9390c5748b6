"""
buildpush - push a build template and its files to a remote build service.

Usage:
    from buildpush import PushCommand, PushConfig

    outcome = await PushCommand(PushConfig.from_env()).run("template.json", message="v2")
    if not outcome.success:
        print(outcome.error.kind)

Lower-level pieces:
    orchestrator = UploadOrchestrator(client)
    resolved = await orchestrator.resolve(plan)
    signals = orchestrator.launch(resolved, archive)
    await CancellableWaiter(interrupt).wait(signals)
"""
__version__ = "0.1.0"

from .archive import ArchiveHandle, TarArchiveBuilder, build_archive_options, resolve_archive_path
from .config import PushConfig
from .errors import ErrorKind, PushError
from .models import (
    BuildDescriptor,
    OutcomeStatus,
    PushOutcome,
    PushSpec,
    RemoteBuildConfig,
    UploadPlan,
)
from .orchestrator import TransferSignals, UploadOrchestrator
from .plan import UploadPlanBuilder
from .push import PushCommand
from .resolver import BuildConfigResolver, parse_slug
from .waiter import CancellableWaiter

__all__ = [
    # Main
    "PushCommand",
    "PushConfig",
    "UploadOrchestrator",
    "TransferSignals",
    "CancellableWaiter",
    "BuildConfigResolver",
    "UploadPlanBuilder",
    "parse_slug",
    # Archive
    "ArchiveHandle",
    "TarArchiveBuilder",
    "build_archive_options",
    "resolve_archive_path",
    # Models
    "BuildDescriptor",
    "OutcomeStatus",
    "PushOutcome",
    "PushSpec",
    "RemoteBuildConfig",
    "UploadPlan",
    # Errors
    "ErrorKind",
    "PushError",
]
