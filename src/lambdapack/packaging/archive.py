"""Deterministic zip archiver and its path-safe extractor."""

from __future__ import annotations

import io
import logging
import os
import shutil
import stat
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from lambdapack.errors import ArchiveFailed, ArchiveSlipError
from lambdapack.packaging.digest import ContentDigest, compute_digest

logger = logging.getLogger(__name__)

# Every entry gets the same metadata so identical content gives identical bytes.
FIXED_DATE_TIME = (2018, 9, 14, 12, 18, 0)
ENTRY_MODE = 0o755
COMPRESS_LEVEL = 6
_UNIX_CREATE_SYSTEM = 3
_MSDOS_DIRECTORY_FLAG = 0x10

PathPredicate = Callable[..., bool]


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One normalized archive member."""

    relative_path: str
    content: bytes
    size: int
    mode: int
    is_dir: bool

    @property
    def archive_name(self) -> str:
        return f"{self.relative_path}/" if self.is_dir else self.relative_path


@dataclass(frozen=True, slots=True)
class Artifact:
    """Packaged archive bytes identified by their digest."""

    data: bytes
    digest: ContentDigest
    size: int
    entries: tuple[str, ...]


def collect_entries(root_dir: Path, path_filter: PathPredicate) -> list[ArchiveEntry]:
    """Walk ``root_dir`` in lexicographic order and normalize every included path."""

    entries: list[ArchiveEntry] = []
    _walk(root_dir, root_dir, path_filter, entries)
    return entries


def _walk(
    root_dir: Path,
    current: Path,
    path_filter: PathPredicate,
    entries: list[ArchiveEntry],
) -> None:
    for child in sorted(current.iterdir(), key=lambda item: item.name):
        relative_path = PurePosixPath(*child.relative_to(root_dir).parts).as_posix()
        if child.is_symlink() and child.is_dir():
            logger.debug("Skipping symlinked directory %s", relative_path)
            continue
        is_dir = child.is_dir()
        if not path_filter(relative_path, is_dir=is_dir):
            logger.debug("Excluded %s", relative_path)
            continue
        if is_dir:
            entries.append(
                ArchiveEntry(
                    relative_path=relative_path,
                    content=b"",
                    size=0,
                    mode=ENTRY_MODE,
                    is_dir=True,
                ),
            )
            _walk(root_dir, child, path_filter, entries)
            continue
        content = child.read_bytes()
        entries.append(
            ArchiveEntry(
                relative_path=relative_path,
                content=content,
                size=len(content),
                mode=ENTRY_MODE,
                is_dir=False,
            ),
        )


def build_archive(root_dir: Path, path_filter: PathPredicate) -> Artifact:
    """Zip the filtered contents of ``root_dir`` into an in-memory artifact."""

    try:
        entries = collect_entries(root_dir, path_filter)
    except OSError as error:
        raise ArchiveFailed(f"Failed to read source tree {root_dir}: {error}") from error

    data = write_zip(entries)
    artifact = Artifact(
        data=data,
        digest=compute_digest(data),
        size=len(data),
        entries=tuple(entry.archive_name for entry in entries),
    )
    logger.info(
        "Archived %s: entries=%d size=%d sha256=%s",
        root_dir,
        len(entries),
        artifact.size,
        artifact.digest.hex,
    )
    return artifact


def write_zip(entries: list[ArchiveEntry]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for entry in entries:
            info = _zip_info(entry)
            if entry.is_dir:
                archive.writestr(info, b"", compress_type=zipfile.ZIP_STORED)
            else:
                archive.writestr(
                    info,
                    entry.content,
                    compress_type=zipfile.ZIP_DEFLATED,
                    compresslevel=COMPRESS_LEVEL,
                )
    return buffer.getvalue()


def _zip_info(entry: ArchiveEntry) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(entry.archive_name, date_time=FIXED_DATE_TIME)
    info.create_system = _UNIX_CREATE_SYSTEM
    file_type = stat.S_IFDIR if entry.is_dir else stat.S_IFREG
    info.external_attr = (file_type | entry.mode) << 16
    if entry.is_dir:
        info.external_attr |= _MSDOS_DIRECTORY_FLAG
    return info


def extract_archive(data: bytes, dest_dir: Path) -> list[Path]:
    """Unpack ``data`` under ``dest_dir`` and return every written path.

    Entries resolving outside ``dest_dir`` raise ``ArchiveSlipError`` before
    anything is written for them. Extraction is not atomic: files written
    before a failure stay in place.
    """

    written: list[Path] = []
    dir_modes: list[tuple[Path, int]] = []
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest_root = dest_dir.resolve()
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for info in archive.infolist():
                target = (dest_root / info.filename).resolve()
                if target == dest_root or not target.is_relative_to(dest_root):
                    raise ArchiveSlipError(info.filename, dest_dir)

                mode = (info.external_attr >> 16) & 0o777
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    if mode:
                        dir_modes.append((target, mode))
                    written.append(target)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, target.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
                if mode:
                    os.chmod(target, mode)
                written.append(target)

        # Children before parents, after their contents are written.
        for directory, mode in reversed(dir_modes):
            os.chmod(directory, mode)
    except zipfile.BadZipFile as error:
        raise ArchiveFailed(f"Not a valid zip archive: {error}") from error
    except OSError as error:
        raise ArchiveFailed(f"Failed to extract into {dest_dir}: {error}") from error
    return written
