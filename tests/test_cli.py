"""Tests for the build-push CLI."""
import logging
import os
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from buildpush.cli import CLIError, _load_env_file, _setup_logging, run_cli
from buildpush.config import PushConfig
from buildpush.errors import UserCancelledError
from buildpush.models import PushOutcome
from buildpush.push import PushCommand

from helpers import client_factory_for, write_template


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    logging.disable(logging.NOTSET)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)


def _fake_command(outcome):
    command = Mock()
    command.run = AsyncMock(return_value=outcome)
    return command


def test_load_env_file(tmp_path, monkeypatch):
    env_path = tmp_path / "push.env"
    env_path.write_text(
        "\n".join(
            [
                "# comment",
                "BUILDPUSH_ADDRESS=https://builds.test",
                "export BUILDPUSH_TOKEN='abc'",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.delenv("BUILDPUSH_ADDRESS", raising=False)
    monkeypatch.delenv("BUILDPUSH_TOKEN", raising=False)

    _load_env_file(env_path)

    assert os.environ["BUILDPUSH_ADDRESS"] == "https://builds.test"
    assert os.environ["BUILDPUSH_TOKEN"] == "abc"


def test_load_env_file_keeps_existing_variables(tmp_path, monkeypatch):
    env_path = tmp_path / "push.env"
    env_path.write_text('BUILDPUSH_TOKEN="from-file"\nnot a setting\n#BUILDPUSH_ADDRESS=x\n', encoding="utf-8")
    monkeypatch.setenv("BUILDPUSH_TOKEN", "from-shell")
    monkeypatch.delenv("BUILDPUSH_ADDRESS", raising=False)

    _load_env_file(env_path)

    assert os.environ["BUILDPUSH_TOKEN"] == "from-shell"
    assert "BUILDPUSH_ADDRESS" not in os.environ


def test_load_env_file_missing(tmp_path):
    with pytest.raises(CLIError, match="not found"):
        _load_env_file(tmp_path / "missing.env")


def test_setup_logging_defaults_to_silent():
    assert _setup_logging(debug=False, silent=False, log_level=None) == "silent"
    assert logging.getLogger().isEnabledFor(logging.ERROR) is False


def test_setup_logging_debug_mode():
    assert _setup_logging(debug=True, silent=False, log_level=None) == "DEBUG"
    assert logging.getLogger().isEnabledFor(logging.DEBUG) is True


def test_setup_logging_explicit_level():
    assert _setup_logging(debug=False, silent=False, log_level="warning") == "WARNING"


@pytest.mark.parametrize("argv", [[], ["a.json", "b.json"], ["--bogus", "a.json"]])
def test_wrong_usage_exits_1(argv):
    command = _fake_command(PushOutcome.ok("user/demo"))
    assert run_cli(argv, command=command) == 1
    command.run.assert_not_awaited()


def test_flags_are_passed_to_command():
    command = _fake_command(PushOutcome.ok("user/demo"))

    code = run_cli(["-token=abc", "-m", "hello", "--address", "https://x.test", "t.json"], command=command)

    assert code == 0
    command.run.assert_awaited_once_with(
        Path("t.json"), token="abc", message="hello", address="https://x.test"
    )


def test_long_message_flag():
    command = _fake_command(PushOutcome.ok("user/demo"))
    run_cli(["-message", "hello", "t.json"], command=command)
    assert command.run.await_args.kwargs["message"] == "hello"


def test_failed_outcome_exits_1():
    command = _fake_command(PushOutcome.cancelled("user/demo", UserCancelledError("ctrl-c")))
    assert run_cli(["t.json"], command=command) == 1


def test_bad_env_file_exits_1(tmp_path):
    command = _fake_command(PushOutcome.ok("user/demo"))
    assert run_cli(["--env-file", str(tmp_path / "nope.env"), "t.json"], command=command) == 1


def test_end_to_end_push(tmp_path, remote_client, archive_builder, consoles):
    template = write_template(tmp_path, push={"name": "user/demo"})
    out, err = consoles
    command = PushCommand(
        PushConfig(address="https://builds.test"),
        client_factory=client_factory_for(remote_client),
        archive_builder=archive_builder,
        console=out,
        err_console=err,
        show_progress=False,
    )

    assert run_cli([str(template)], command=command) == 0
    assert "user/demo" in out.file.getvalue()
    remote_client.create_config.assert_awaited_once_with("user", "demo")
