"""Remote service adapters."""
from .api_client import BuildServiceClient

__all__ = ["BuildServiceClient"]
