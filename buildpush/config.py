"""Environment-driven configuration for the push client."""
import os
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_ADDRESS = "https://atlas.hashicorp.com"
DEFAULT_TIMEOUT = 60
DEFAULT_CHUNK_SIZE = 256 * 1024


@dataclass(frozen=True)
class PushConfig:
    """Immutable configuration of the remote client."""
    address: str = DEFAULT_ADDRESS
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_env(cls) -> "PushConfig":
        """Read BUILDPUSH_ADDRESS, BUILDPUSH_TOKEN and BUILDPUSH_TIMEOUT."""
        timeout = os.getenv("BUILDPUSH_TIMEOUT")
        try:
            timeout_value = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError:
            timeout_value = DEFAULT_TIMEOUT
        return cls(
            address=os.getenv("BUILDPUSH_ADDRESS") or DEFAULT_ADDRESS,
            token=os.getenv("BUILDPUSH_TOKEN") or None,
            timeout=timeout_value,
        )

    def with_overrides(
        self,
        address: Optional[str] = None,
        token: Optional[str] = None,
    ) -> "PushConfig":
        """Copy with non-empty overrides applied."""
        return replace(
            self,
            address=address or self.address,
            token=token or self.token,
        )
