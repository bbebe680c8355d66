"""Compiler toolchain implementations."""

from lambdapack.toolchain.base import BuildRequest, BuildResult, Toolchain
from lambdapack.toolchain.go_backend import BASELINE_ENV_KEYS, GoToolchain, build_child_env

__all__ = [
    "BASELINE_ENV_KEYS",
    "BuildRequest",
    "BuildResult",
    "GoToolchain",
    "Toolchain",
    "build_child_env",
]
