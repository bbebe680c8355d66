"""Build-then-archive orchestration for one source directory."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from lambdapack.config import DEFAULT_FORCED_INCLUDES, DEFAULT_IGNORE_FILES, Settings
from lambdapack.errors import ArchiveFailed, BinaryPathTaken
from lambdapack.packaging.archive import Artifact, build_archive
from lambdapack.packaging.filters import PathFilter, compile_filter, read_rule_source
from lambdapack.toolchain import BuildRequest, GoToolchain, Toolchain

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """What to package and which target platform to compile for."""

    source_dir: Path
    target_env: Mapping[str, str] = field(default_factory=dict)


class Packager:
    """Compile the source tree, archive it, and leave the tree as it was found."""

    def __init__(
        self,
        toolchain: Toolchain,
        *,
        binary_name: str = "main",
        ignore_files: Sequence[str] = DEFAULT_IGNORE_FILES,
        runtime_files: Sequence[str] = DEFAULT_FORCED_INCLUDES,
    ) -> None:
        self.toolchain = toolchain
        self.binary_name = binary_name
        self.ignore_files = tuple(ignore_files)
        self.runtime_files = tuple(runtime_files)

    @classmethod
    def from_settings(cls, settings: Settings) -> Packager:
        return cls(
            GoToolchain(settings.toolchain.executable),
            binary_name=settings.packaging.binary_name,
            ignore_files=settings.packaging.ignore_files,
            runtime_files=settings.packaging.forced_includes,
        )

    def package(self, spec: SourceSpec) -> Artifact:
        source_dir = spec.source_dir
        output_path = source_dir / self.binary_name
        if output_path.exists() or output_path.is_symlink():
            raise BinaryPathTaken(output_path)
        try:
            self.toolchain.build(
                BuildRequest(
                    source_dir=source_dir,
                    output_path=output_path,
                    env=dict(spec.target_env),
                ),
            )
            path_filter = self.compile_filter(source_dir)
            return build_archive(source_dir, path_filter)
        finally:
            _remove_binary(output_path)

    def compile_filter(self, source_dir: Path) -> PathFilter:
        try:
            rule_sources = [read_rule_source(source_dir / name) for name in self.ignore_files]
        except OSError as error:
            raise ArchiveFailed(f"Failed to read ignore file in {source_dir}: {error}") from error
        return compile_filter(
            rule_sources,
            forced_includes=(*self.runtime_files, self.binary_name),
        )


def _remove_binary(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as error:
        logger.warning("Failed to remove build output %s: %s", path, error)
