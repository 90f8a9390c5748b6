"""Command line interface for buildpush."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import PushConfig
from .push import PushCommand


class CLIError(RuntimeError):
    """Raised when CLI validation fails before a push starts."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Route records through a stderr RichHandler.

    Nothing is logged unless --debug or --log-level asks for it; --silent wins
    over both. Returns the effective level name, or "silent".
    """
    logging.disable(logging.NOTSET)
    if silent or not (debug or log_level):
        logging.basicConfig(handlers=[logging.NullHandler()], force=True)
        logging.disable(logging.CRITICAL)
        logging.getLogger().setLevel(logging.CRITICAL + 1)
        return "silent"

    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)
    handler = RichHandler(
        console=Console(stderr=True),
        markup=False,
        show_time=False,
        show_path=False,
    )
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
    return logging.getLevelName(level)


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """KEY=VALUE from one .env line; None for blanks, comments and junk."""
    line = line.strip()
    if line.startswith("export "):
        line = line[len("export "):]
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key or key.startswith("#"):
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key, value


def _load_env_file(path: Path) -> None:
    """Export BUILDPUSH_* style settings; variables already set are kept."""
    if not path.is_file():
        raise CLIError(f"env file not found: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for parsed in filter(None, map(_parse_env_line, lines)):
        os.environ.setdefault(*parsed)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-push",
        description=(
            "Push the given template and supporting files to a build service. "
            "If a build configuration for the template does not exist it is "
            "created; otherwise a new version is added to it."
        ),
    )
    parser.add_argument("template", nargs="*", type=Path, help="Template file to push")
    parser.add_argument(
        "-m",
        "-message",
        "--message",
        dest="message",
        default=None,
        help="A message identifying the purpose or changes of this push, like a VCS commit message",
    )
    parser.add_argument(
        "-token",
        "--token",
        dest="token",
        default=None,
        help="Access token used when uploading (default from template or BUILDPUSH_TOKEN)",
    )
    parser.add_argument(
        "--address",
        default=None,
        help="Build service URL (default from template, BUILDPUSH_ADDRESS or the public service)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not render transfer progress",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"build-push {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None, command: Optional[PushCommand] = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return 0 if exc.code in (0, None) else 1

    if len(args.template) != 1:
        parser.print_help(sys.stderr)
        return 1

    env_file = args.env_file
    if env_file is None and Path(".env").is_file():
        env_file = Path(".env")
    if env_file is not None:
        try:
            _load_env_file(env_file)
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if command is None:
        command = PushCommand(PushConfig.from_env(), show_progress=not args.no_progress)

    outcome = asyncio.run(
        command.run(
            args.template[0],
            token=args.token,
            message=args.message,
            address=args.address,
        )
    )
    return outcome.exit_code


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
