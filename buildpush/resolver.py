"""Remote build configuration lookup with create-if-missing."""
import logging
from typing import Tuple

from .errors import BuildConfigNotFound, InvalidSlugError, RemoteResolutionError
from .models import RemoteBuildConfig
from .protocols import IRemoteClient

logger = logging.getLogger(__name__)


def parse_slug(slug: str) -> Tuple[str, str]:
    """Split a user/name slug into its two components."""
    parts = slug.split("/") if slug else []
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise InvalidSlugError(f"invalid slug {slug!r}: expected format user/name")
    return parts[0], parts[1]


class BuildConfigResolver:
    """Fetches the build configuration for a slug, creating it if absent."""

    def __init__(self, client: IRemoteClient):
        self._client = client

    async def resolve(self, slug: str) -> RemoteBuildConfig:
        user, name = parse_slug(slug)

        try:
            config = await self._client.fetch_config(user, name)
            logger.debug(f"Found build configuration {slug}")
            return config
        except BuildConfigNotFound:
            logger.info(f"Build configuration {slug} not found, creating it")
        except Exception as exc:
            raise RemoteResolutionError(f"error fetching build configuration {slug}: {exc}") from exc

        try:
            return await self._client.create_config(user, name)
        except Exception as exc:
            raise RemoteResolutionError(f"error creating build configuration {slug}: {exc}") from exc
