"""
Protocols (Interfaces) for Dependency Inversion.

The push core only talks to the remote service and the archive builder
through these small interfaces.
"""
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Optional, Protocol, runtime_checkable

from .models import ArchiveOptions, BuildConfigVersion, RemoteBuildConfig

ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class IRemoteClient(Protocol):
    """Interface for the remote build-configuration service."""

    async def fetch_config(self, user: str, name: str) -> RemoteBuildConfig:
        """Fetch an existing build configuration; raises BuildConfigNotFound."""
        ...

    async def create_config(self, user: str, name: str) -> RemoteBuildConfig:
        """Create a build configuration."""
        ...

    async def upload_version(
        self,
        version: BuildConfigVersion,
        metadata: Dict[str, Any],
        stream: BinaryIO,
        size: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Register a version and transfer its archive."""
        ...


@runtime_checkable
class IArchiveBuilder(Protocol):
    """Interface for archive creation."""

    def create(self, path: Path, options: ArchiveOptions) -> Any:
        """Archive a directory; returns an ArchiveHandle."""
        ...
