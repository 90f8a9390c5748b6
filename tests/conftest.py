"""Shared fixtures for push tests."""
import io
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from buildpush.errors import BuildConfigNotFound
from buildpush.models import RemoteBuildConfig

from helpers import FakeArchiveBuilder


@pytest.fixture
def remote_client():
    """Remote client whose build configuration does not exist yet."""
    client = AsyncMock()
    client.fetch_config.side_effect = BuildConfigNotFound("not found", 404)
    client.create_config.side_effect = lambda user, name: RemoteBuildConfig(user, name)
    client.upload_version.return_value = None
    return client


@pytest.fixture
def archive_builder():
    return FakeArchiveBuilder()


@pytest.fixture
def consoles():
    out = Console(file=io.StringIO(), width=200)
    err = Console(file=io.StringIO(), width=200)
    return out, err
