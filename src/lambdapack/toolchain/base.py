"""Toolchain interface for building the deployable binary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(slots=True)
class BuildRequest:
    """Inputs required to compile one source directory."""

    source_dir: Path
    output_path: Path
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BuildResult:
    """Outcome of a successful build."""

    output_path: Path
    output: str
    command: list[str]


class Toolchain(Protocol):
    """Protocol implemented by compiler invokers."""

    def build(self, request: BuildRequest) -> BuildResult:
        """Compile ``request.source_dir`` into ``request.output_path`` or raise."""
