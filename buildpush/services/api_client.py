"""HTTP adapter for the remote build-configuration service."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, BinaryIO, Dict, Optional

import httpx

from ..config import DEFAULT_CHUNK_SIZE
from ..errors import BuildConfigNotFound, RemoteAPIError
from ..models import BuildConfigVersion, RemoteBuildConfig
from ..protocols import ProgressCallback

logger = logging.getLogger(__name__)

BUILD_CONFIGS_ENDPOINT = "/api/v1/packer/build-configurations"
TOKEN_HEADER = "X-Atlas-Token"


class BuildServiceClient:
    """
    HTTP client for build configurations and their versions.

    Implements IRemoteClient protocol.
    """

    def __init__(
        self,
        address: str,
        token: Optional[str] = None,
        timeout: float = 60,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._address = address
        self._token = token
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        headers = {TOKEN_HEADER: self._token} if self._token else {}
        self._client = httpx.AsyncClient(
            base_url=self._address,
            timeout=self._timeout,
            headers=headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()

    async def _request(self, method: str, endpoint: str, retries: int = 3, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("BuildServiceClient not initialized. Use 'async with' context.")

        last_exception = None

        for attempt in range(retries):
            try:
                response = await self._client.request(method, endpoint, **kwargs)

                if response.status_code >= 500 and attempt < retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue

                if response.status_code >= 400:
                    try:
                        error_detail = response.json()
                    except Exception:
                        error_detail = response.text
                    raise RemoteAPIError(
                        f"API error {response.status_code} on {method} {endpoint}: {error_detail}",
                        status_code=response.status_code,
                    )

                return response
            except (httpx.RequestError, httpx.TimeoutException) as exc:
                last_exception = exc
                if attempt < retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise

        if last_exception:
            raise last_exception
        raise RuntimeError(f"Failed to {method} {endpoint} after {retries} attempts")

    @staticmethod
    def _config_from(data: Any, user: str, name: str) -> RemoteBuildConfig:
        if isinstance(data, dict):
            data = data.get("build_configuration", data)
        if not isinstance(data, dict):
            data = {}
        return RemoteBuildConfig(
            user=data.get("username") or user,
            name=data.get("name") or name,
        )

    async def fetch_config(self, user: str, name: str) -> RemoteBuildConfig:
        try:
            response = await self._request("GET", f"{BUILD_CONFIGS_ENDPOINT}/{user}/{name}")
        except RemoteAPIError as exc:
            if exc.status_code == 404:
                raise BuildConfigNotFound(f"build configuration {user}/{name} not found", 404) from exc
            raise
        return self._config_from(response.json(), user, name)

    async def create_config(self, user: str, name: str) -> RemoteBuildConfig:
        response = await self._request(
            "POST",
            BUILD_CONFIGS_ENDPOINT,
            retries=1,
            json={"build_configuration": {"username": user, "name": name}},
        )
        logger.info(f"Created build configuration {user}/{name}")
        return self._config_from(response.json(), user, name)

    async def upload_version(
        self,
        version: BuildConfigVersion,
        metadata: Dict[str, Any],
        stream: BinaryIO,
        size: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Register the version, then PUT the archive to the returned upload path."""
        body = version.to_wire()
        body["metadata"] = metadata
        response = await self._request(
            "POST",
            f"{BUILD_CONFIGS_ENDPOINT}/{version.user}/{version.name}/versions",
            retries=1,
            json={"version": body},
        )
        upload_path = response.json().get("upload_path")
        if not upload_path:
            raise RemoteAPIError(f"no upload path returned for {version.slug}")

        # The stream can only be consumed once, so the PUT is never retried.
        await self._request(
            "PUT",
            upload_path,
            retries=1,
            content=self._iter_chunks(stream, size, progress_callback),
            headers={"Content-Length": str(size), "Content-Type": "application/octet-stream"},
        )
        logger.info(f"Uploaded {size} bytes for {version.slug}")

    async def _iter_chunks(
        self,
        stream: BinaryIO,
        size: int,
        progress_callback: Optional[ProgressCallback],
    ) -> AsyncIterator[bytes]:
        sent = 0
        while True:
            chunk = await asyncio.to_thread(stream.read, self._chunk_size)
            if not chunk:
                break
            sent += len(chunk)
            if progress_callback:
                progress_callback(sent, size)
            yield chunk
