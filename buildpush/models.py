"""
Models for the push workflow.

Immutable dataclasses; each is built once per push and only read afterwards.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import PushError


@dataclass(frozen=True)
class PushSpec:
    """Push settings taken from a template and the command line."""
    template_path: Path
    slug: str
    token: Optional[str] = None
    message: Optional[str] = None
    base_dir: str = ""
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    vcs: bool = False
    address: Optional[str] = None


@dataclass(frozen=True)
class BuilderSpec:
    """A builder declared in the template."""
    name: str
    type: str


@dataclass(frozen=True)
class PostProcessorSpec:
    """A post-processor declared in the template."""
    type: str
    only: Tuple[str, ...] = ()
    except_: Tuple[str, ...] = ()

    def skip(self, builder_name: str) -> bool:
        """Whether this post-processor does not run for the given builder."""
        if self.only and builder_name not in self.only:
            return True
        return builder_name in self.except_


@dataclass(frozen=True)
class BuildDescriptor:
    """One build of the uploaded version."""
    name: str
    builder_type: str
    has_artifact_post_processor: bool = False


@dataclass(frozen=True)
class UploadPlan:
    """Everything the orchestrator needs to create and upload a version."""
    slug: str
    builds: Mapping[str, BuildDescriptor] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mappings so the plan cannot change after handoff.
        object.__setattr__(self, "builds", MappingProxyType(dict(self.builds)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def untracked_builds(self) -> List[str]:
        """Names of builds whose artifacts will not be tracked remotely."""
        return sorted(
            name for name, build in self.builds.items()
            if not build.has_artifact_post_processor
        )


@dataclass(frozen=True)
class ArchiveOptions:
    """Inclusion rules handed to the archive builder."""
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    vcs: bool = False
    extra: Mapping[str, Path] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoteBuildConfig:
    """Build configuration as resolved or created on the remote."""
    user: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.user}/{self.name}"


@dataclass(frozen=True)
class VersionBuild:
    """Build entry in the wire shape the remote expects."""
    name: str
    type: str
    artifact: bool

    def to_wire(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "artifact": self.artifact}


@dataclass(frozen=True)
class BuildConfigVersion:
    """New version of a build configuration."""
    user: str
    name: str
    builds: Tuple[VersionBuild, ...] = ()

    @property
    def slug(self) -> str:
        return f"{self.user}/{self.name}"

    def to_wire(self) -> Dict[str, Any]:
        return {"builds": [build.to_wire() for build in self.builds]}


class OutcomeStatus(Enum):
    """Terminal state of a push."""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PushOutcome:
    """Immutable result of one push invocation."""
    slug: str
    status: OutcomeStatus = OutcomeStatus.COMPLETED
    error: Optional[PushError] = None

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.COMPLETED

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @classmethod
    def ok(cls, slug: str):
        return cls(slug=slug, status=OutcomeStatus.COMPLETED)

    @classmethod
    def fail(cls, slug: str, error: PushError):
        return cls(slug=slug, status=OutcomeStatus.FAILED, error=error)

    @classmethod
    def cancelled(cls, slug: str, error: PushError):
        return cls(slug=slug, status=OutcomeStatus.CANCELLED, error=error)
