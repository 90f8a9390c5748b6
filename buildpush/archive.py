"""
Archive planning and creation.

ArchivePlanner decides which directory is archived and with which rules;
TarArchiveBuilder turns that into a gzip'd tar stream of known size.
"""
import fnmatch
import logging
import os
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable, List, Sequence, Union

from .errors import ArchiveCreationError, PathResolutionError
from .models import ArchiveOptions, PushSpec

logger = logging.getLogger(__name__)

# Name the template always takes within the archive.
TEMPLATE_ARCHIVE_ENTRY = ".packer-template"

SPOOL_MAX_SIZE = 16 * 1024 * 1024


def resolve_archive_path(template_path: Union[str, Path], base_dir: str = "") -> Path:
    """
    Determine the absolute directory to archive.

    There are three possibilities:

      1. base_dir is an absolute path: use it verbatim.
      2. base_dir is empty: use the directory of the template.
      3. base_dir is relative: resolve it against the directory of the template.
    """
    if base_dir and os.path.isabs(base_dir):
        return Path(base_dir)

    try:
        template_dir = os.path.dirname(os.path.abspath(os.fspath(template_path)))
        if base_dir:
            template_dir = os.path.join(template_dir, base_dir)
        return Path(os.path.abspath(template_dir))
    except (OSError, ValueError) as exc:
        raise PathResolutionError(f"error determining path to archive: {exc}") from exc


def build_archive_options(spec: PushSpec) -> ArchiveOptions:
    """Archive rules from the push settings plus the reserved template entry."""
    return ArchiveOptions(
        include=tuple(spec.include),
        exclude=tuple(spec.exclude),
        vcs=spec.vcs,
        extra={TEMPLATE_ARCHIVE_ENTRY: Path(spec.template_path)},
    )


class ArchiveHandle:
    """Readable archive stream with a known size, released exactly once."""

    def __init__(self, stream: BinaryIO, size: int):
        self._stream = stream
        self.size = size
        self.close_count = 0

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        if self.close_count:
            return
        self.close_count += 1
        self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _matches(rel_path: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        prefix = pattern.rstrip("/")
        if fnmatch.fnmatch(rel_path, pattern) or rel_path.startswith(prefix + "/"):
            return True
    return False


class TarArchiveBuilder:
    """Builds a gzip'd tar archive of a directory."""

    def __init__(self, spool_max_size: int = SPOOL_MAX_SIZE):
        self._spool_max_size = spool_max_size

    def create(self, path: Path, options: ArchiveOptions) -> ArchiveHandle:
        root = Path(path)
        if not root.is_dir():
            raise ArchiveCreationError(f"not a directory: {root}")

        buffer = tempfile.SpooledTemporaryFile(max_size=self._spool_max_size)
        try:
            files = self.collect_files(root, options)
            with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
                for rel_path in files:
                    tar.add(str(root / rel_path), arcname=rel_path, recursive=False)
                for entry, source in options.extra.items():
                    tar.add(str(source), arcname=entry, recursive=False)
            size = buffer.tell()
            buffer.seek(0)
        except (OSError, UnicodeError, tarfile.TarError, subprocess.CalledProcessError) as exc:
            buffer.close()
            raise ArchiveCreationError(f"error archiving {root}: {exc}") from exc

        logger.debug(f"Archived {len(files)} files from {root} ({size} bytes)")
        return ArchiveHandle(buffer, size)

    def collect_files(self, root: Path, options: ArchiveOptions) -> List[str]:
        """Relative POSIX paths of the files to archive, sorted."""
        if options.vcs:
            candidates = self._vcs_files(root)
        else:
            candidates = [
                item.relative_to(root).as_posix()
                for item in root.rglob("*")
                if item.is_file()
            ]

        files = []
        for rel_path in candidates:
            if options.include and not _matches(rel_path, options.include):
                continue
            if _matches(rel_path, options.exclude):
                continue
            files.append(rel_path)
        return sorted(files)

    @staticmethod
    def _vcs_files(root: Path) -> Sequence[str]:
        result = subprocess.run(
            ["git", "ls-files", "-z"],
            cwd=root,
            capture_output=True,
            check=True,
        )
        # Names are raw bytes; non-UTF-8 ones round-trip through surrogateescape.
        names = [os.fsdecode(raw) for raw in result.stdout.split(b"\0") if raw]
        return [name for name in names if (root / name).is_file()]
