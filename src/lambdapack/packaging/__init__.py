"""Reproducible packaging: ignore filter, archiver, digests and the packager."""

from lambdapack.packaging.archive import ArchiveEntry, Artifact, build_archive, extract_archive
from lambdapack.packaging.digest import ContentDigest, compute_digest
from lambdapack.packaging.filters import IgnoreRuleSet, PathFilter, compile_filter
from lambdapack.packaging.packager import Packager, SourceSpec

__all__ = [
    "ArchiveEntry",
    "Artifact",
    "ContentDigest",
    "IgnoreRuleSet",
    "Packager",
    "PathFilter",
    "SourceSpec",
    "build_archive",
    "compile_filter",
    "compute_digest",
    "extract_archive",
]
