"""Fakes shared by the push tests."""
import io
import json
from contextlib import asynccontextmanager
from pathlib import Path

from buildpush.archive import ArchiveHandle


class FakeArchiveBuilder:
    """Archive builder returning in-memory archives."""

    def __init__(self, payload: bytes = b"archive-bytes", error: Exception = None):
        self.payload = payload
        self.error = error
        self.calls = []
        self.handles = []

    def create(self, path, options):
        self.calls.append((Path(path), options))
        if self.error is not None:
            raise self.error
        handle = ArchiveHandle(io.BytesIO(self.payload), len(self.payload))
        self.handles.append(handle)
        return handle


def client_factory_for(client):
    @asynccontextmanager
    async def factory(config):
        client.config = config
        yield client

    return factory


def write_template(directory: Path, push=None, builders=None, post_processors=None) -> Path:
    data = {
        "builders": builders if builders is not None else [{"type": "docker"}],
        "post-processors": post_processors if post_processors is not None else ["atlas"],
    }
    if push is not None:
        data["push"] = push
    path = directory / "template.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
