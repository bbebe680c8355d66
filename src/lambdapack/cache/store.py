"""Content-addressed artifact cache on the local filesystem."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from lambdapack.errors import CacheRemoveFailed, CacheWriteFailed
from lambdapack.packaging.digest import ContentDigest

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".zip"


class CacheStore:
    """Directory of artifacts named ``<sha256-hex>.zip``.

    The directory is created lazily on first write. Writes go through a temp
    file and ``os.replace``, so concurrent writers of the same digest overwrite
    each other with identical bytes and readers never see a partial file.
    """

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = root_dir

    def path_for(self, digest: ContentDigest) -> Path:
        return self.root_dir / f"{digest.hex}{ARTIFACT_SUFFIX}"

    def contains(self, path: Path) -> bool:
        return path.is_file()

    def write(self, digest: ContentDigest, data: bytes) -> Path:
        path = self.path_for(digest)
        tmp_path: str | None = None
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.root_dir),
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, path)
        except OSError as error:
            if tmp_path is not None:
                _discard(Path(tmp_path))
            raise CacheWriteFailed(path, str(error)) from error

        logger.info("Cached artifact %s (%d bytes)", path, len(data))
        return path

    def remove(self, path: Path) -> bool:
        """Best-effort delete of exactly ``path``; returns whether a file was removed."""

        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Cache entry already absent: %s", path)
            return False
        except OSError as error:
            failure = CacheRemoveFailed(path, str(error))
            logger.warning("%s", failure)
            return False

        logger.info("Removed cache entry %s", path)
        return True

    def entries(self) -> list[Path]:
        if not self.root_dir.is_dir():
            return []
        return sorted(self.root_dir.glob(f"*{ARTIFACT_SUFFIX}"))


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as error:
        logger.debug("Failed to discard temp file %s: %s", path, error)
