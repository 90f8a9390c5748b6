"""
Error taxonomy for the push workflow.

Every failure that ends a push is a PushError carrying its ErrorKind, so the
CLI can print one line naming the stage that failed and tests can assert on
the kind instead of the wording.
"""
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Stage at which a push failed."""
    TEMPLATE_VALIDATION = "template_validation"
    PATH_RESOLUTION = "path_resolution"
    INVALID_SLUG = "invalid_slug"
    REMOTE_RESOLUTION = "remote_resolution"
    ARCHIVE_CREATION = "archive_creation"
    TRANSFER_FAILURE = "transfer_failure"
    USER_CANCELLATION = "user_cancellation"


class PushError(RuntimeError):
    """Base class for terminal push failures."""

    kind: ErrorKind
    stage = "push"

    def describe(self) -> str:
        return f"{self.stage}: {self}"


class TemplateValidationError(PushError):
    """Template could not be read or lacks the push name."""
    kind = ErrorKind.TEMPLATE_VALIDATION
    stage = "template"


class PathResolutionError(PushError):
    """Archive directory could not be resolved."""
    kind = ErrorKind.PATH_RESOLUTION
    stage = "archive path"


class InvalidSlugError(PushError):
    """Push name is not a user/name slug."""
    kind = ErrorKind.INVALID_SLUG
    stage = "resolution"


class RemoteResolutionError(PushError):
    """Build configuration could not be fetched or created."""
    kind = ErrorKind.REMOTE_RESOLUTION
    stage = "resolution"


class ArchiveCreationError(PushError):
    """Archive of the source directory could not be built."""
    kind = ErrorKind.ARCHIVE_CREATION
    stage = "archive"


class TransferFailedError(PushError):
    """Upload started but the transfer reported an error."""
    kind = ErrorKind.TRANSFER_FAILURE
    stage = "transfer"


class UserCancelledError(PushError):
    """Operator interrupted the push while waiting for the transfer."""
    kind = ErrorKind.USER_CANCELLATION
    stage = "cancelled"


class RemoteAPIError(RuntimeError):
    """Remote build service answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BuildConfigNotFound(RemoteAPIError):
    """Remote build configuration does not exist."""
