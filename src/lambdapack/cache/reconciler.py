"""Create/read/update/delete lifecycle over the shared artifact cache.

Each logical resource moves through ``Absent -> Present(d) -> Present(d') ->
Absent``. The host framework decides when to call each operation and keeps
the returned ``ResourceState`` between calls; at most one call per resource
runs at a time, while different resources may share the cache directory and
even the same cache entry.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lambdapack.cache.state import ResourceState
from lambdapack.cache.store import CacheStore
from lambdapack.errors import InvalidSource
from lambdapack.packaging.archive import Artifact
from lambdapack.packaging.packager import Packager, SourceSpec

logger = logging.getLogger(__name__)


class CacheReconciler:
    """Keeps one resource's cached artifact in line with its source directory."""

    def __init__(self, store: CacheStore, packager: Packager) -> None:
        self.store = store
        self.packager = packager

    def create(self, spec: SourceSpec) -> ResourceState:
        _require_directory(spec.source_dir)
        artifact = self.packager.package(spec)
        path = self.store.write(artifact.digest, artifact.data)
        logger.info("Created %s -> %s", spec.source_dir, path)
        return _state_for(artifact, path)

    def read(self, spec: SourceSpec, current: ResourceState) -> ResourceState | None:
        """Refresh state from source; ``None`` means the source is gone."""

        if not spec.source_dir.is_dir():
            logger.info("Source %s no longer exists; clearing resource", spec.source_dir)
            return None
        return self._reconcile(spec, current)

    def update(self, spec: SourceSpec, current: ResourceState) -> ResourceState:
        _require_directory(spec.source_dir)
        return self._reconcile(spec, current)

    def delete(self, current: ResourceState) -> None:
        self.store.remove(current.path)

    def _reconcile(self, spec: SourceSpec, current: ResourceState) -> ResourceState:
        # Always rebuild: the compiler output depends on source we cannot trust.
        artifact = self.packager.package(spec)
        new_path = self.store.path_for(artifact.digest)
        old_path = current.path

        if new_path == old_path:
            if self.store.contains(new_path):
                logger.debug("Cache hit for %s at %s", spec.source_dir, new_path)
                return _state_for(artifact, new_path)
            logger.info("Cache entry %s went missing; rewriting", new_path)
            self.store.write(artifact.digest, artifact.data)
            return _state_for(artifact, new_path)

        logger.info(
            "Drift for %s: %s -> %s",
            spec.source_dir,
            current.digest,
            artifact.digest.hex,
        )
        self.store.write(artifact.digest, artifact.data)
        self.store.remove(old_path)
        return _state_for(artifact, new_path)


def _require_directory(source_dir: Path) -> None:
    if not source_dir.is_dir():
        raise InvalidSource(source_dir)


def _state_for(artifact: Artifact, path: Path) -> ResourceState:
    return ResourceState(
        digest=artifact.digest.hex,
        path=path,
        size=artifact.size,
        base64_sha256=artifact.digest.base64,
        md5=artifact.digest.md5,
    )
