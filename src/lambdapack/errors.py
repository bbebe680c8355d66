"""Error taxonomy shared by the packaging pipeline and the cache reconciler."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class FailureStage(str, Enum):
    """Pipeline stage that produced a failure."""

    SOURCE = "source"
    TOOLCHAIN = "toolchain"
    BUILD = "build"
    FILTER = "filter"
    ARCHIVE = "archive"
    CACHE_WRITE = "cache_write"
    CACHE_REMOVE = "cache_remove"


class PackagingError(RuntimeError):
    """Base error tagged with the stage that failed."""

    def __init__(self, message: str, *, stage: FailureStage) -> None:
        super().__init__(message)
        self.stage = stage


class InvalidSource(PackagingError):
    """Source path is missing or is not a directory."""

    def __init__(self, source_dir: Path) -> None:
        super().__init__(
            f"Source must be an existing directory: {source_dir}",
            stage=FailureStage.SOURCE,
        )
        self.source_dir = source_dir


class BinaryPathTaken(PackagingError):
    """The build output would overwrite a path that already exists in the source."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Build output path already exists in the source tree: {path}",
            stage=FailureStage.SOURCE,
        )
        self.path = path


class ToolchainNotFound(PackagingError):
    """Compiler executable could not be located on the search path."""

    def __init__(self, executable: str) -> None:
        super().__init__(
            f"Build toolchain not found on PATH: {executable}",
            stage=FailureStage.TOOLCHAIN,
        )
        self.executable = executable


class BuildFailed(PackagingError):
    """Compiler exited with a nonzero status; ``output`` holds its combined output."""

    def __init__(self, output: str, *, exit_code: int) -> None:
        detail = output.strip() or "<no output>"
        super().__init__(
            f"Build failed with exit code {exit_code}:\n{detail}",
            stage=FailureStage.BUILD,
        )
        self.output = output
        self.exit_code = exit_code


class FilterParseFailed(PackagingError):
    """An ignore pattern could not be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, stage=FailureStage.FILTER)


class ArchiveFailed(PackagingError):
    """I/O failure while building or extracting an archive."""

    def __init__(self, message: str) -> None:
        super().__init__(message, stage=FailureStage.ARCHIVE)


class ArchiveSlipError(ArchiveFailed):
    """Archive entry would be written outside the extraction directory."""

    def __init__(self, entry_name: str, dest_dir: Path) -> None:
        super().__init__(f"{entry_name}: illegal file path outside {dest_dir}")
        self.entry_name = entry_name
        self.dest_dir = dest_dir


class CacheWriteFailed(PackagingError):
    """Artifact could not be persisted under its content-addressed path."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Failed to write cache entry {path}: {reason}",
            stage=FailureStage.CACHE_WRITE,
        )
        self.path = path


class CacheRemoveFailed(PackagingError):
    """Old cache entry could not be removed. Reported, never escalated."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Failed to remove cache entry {path}: {reason}",
            stage=FailureStage.CACHE_REMOVE,
        )
        self.path = path
