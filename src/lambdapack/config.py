"""Runtime configuration for packaging, toolchain and artifact cache."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_cache_dir

APP_NAMESPACE = "lambdapack"
DEFAULT_IGNORE_FILES = (".gitignore", ".npmignore")
DEFAULT_FORCED_INCLUDES = ("node_modules", "_proxy.js", "byline.js")


def default_cache_dir() -> Path:
    return Path(user_cache_dir(APP_NAMESPACE, appauthor=False, opinion=False))


@dataclass(slots=True)
class ToolchainSettings:
    """Compiler toolchain and target platform settings."""

    executable: str = "go"
    target_os: str = "linux"
    target_arch: str = "amd64"
    module_path: str = ""


@dataclass(slots=True)
class PackagingSettings:
    """Archive layout settings."""

    binary_name: str = "main"
    ignore_files: tuple[str, ...] = DEFAULT_IGNORE_FILES
    forced_includes: tuple[str, ...] = DEFAULT_FORCED_INCLUDES


@dataclass(slots=True)
class CacheSettings:
    """Content-addressed artifact cache settings."""

    root_dir: Path = field(default_factory=default_cache_dir)


@dataclass(slots=True)
class Settings:
    """Application settings grouped by pipeline stage."""

    toolchain: ToolchainSettings = field(default_factory=ToolchainSettings)
    packaging: PackagingSettings = field(default_factory=PackagingSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, cache_dir: Path | None = None) -> Settings:
        """Load settings from environment with defaults matching a Go Lambda build."""

        env_cache_dir = os.getenv("LAMBDAPACK_CACHE_DIR", "").strip()
        if cache_dir is None:
            cache_dir = Path(env_cache_dir) if env_cache_dir else default_cache_dir()
        return cls(
            toolchain=ToolchainSettings(
                executable=os.getenv("LAMBDAPACK_TOOLCHAIN", "go").strip(),
                target_os=os.getenv("LAMBDAPACK_TARGET_OS", "linux").strip(),
                target_arch=os.getenv("LAMBDAPACK_TARGET_ARCH", "amd64").strip(),
                module_path=os.getenv("GOPATH", ""),
            ),
            packaging=PackagingSettings(
                binary_name=os.getenv("LAMBDAPACK_BINARY_NAME", "main").strip(),
                ignore_files=_env_csv("LAMBDAPACK_IGNORE_FILES", DEFAULT_IGNORE_FILES),
                forced_includes=_env_csv("LAMBDAPACK_FORCED_INCLUDES", DEFAULT_FORCED_INCLUDES),
            ),
            cache=CacheSettings(root_dir=cache_dir),
            log_level=os.getenv("LAMBDAPACK_LOG_LEVEL", "WARNING").strip().upper(),
        )

    def validate(self) -> None:
        """Raise configuration error if any setting is unusable."""

        if not self.toolchain.executable:
            raise ValueError("LAMBDAPACK_TOOLCHAIN must not be empty.")
        if not self.toolchain.target_os:
            raise ValueError("LAMBDAPACK_TARGET_OS must not be empty.")
        if not self.toolchain.target_arch:
            raise ValueError("LAMBDAPACK_TARGET_ARCH must not be empty.")

        binary_name = self.packaging.binary_name
        if binary_name in {"", ".", ".."} or any(sep in binary_name for sep in "/\\"):
            raise ValueError(
                "LAMBDAPACK_BINARY_NAME must be a plain file name: "
                f"{binary_name!r}",
            )
        if binary_name.startswith("."):
            raise ValueError(
                f"LAMBDAPACK_BINARY_NAME must not be a dotfile: {binary_name!r}",
            )
        for name in self.packaging.ignore_files:
            if Path(name).is_absolute() or ".." in Path(name).parts:
                raise ValueError(
                    f"LAMBDAPACK_IGNORE_FILES entries must be relative to the source: {name!r}",
                )
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ValueError(f"Invalid LAMBDAPACK_LOG_LEVEL: {self.log_level!r}")

    def target_env(self) -> dict[str, str]:
        """Environment handed to the compiler for cross-compilation."""

        env = {
            "GOOS": self.toolchain.target_os,
            "GOARCH": self.toolchain.target_arch,
        }
        if self.toolchain.module_path:
            env["GOPATH"] = self.toolchain.module_path
        return env


def _env_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default

    values: list[str] = []
    seen: set[str] = set()
    for part in raw.split(","):
        token = part.strip()
        if not token or token in seen:
            continue
        seen.add(token)
        values.append(token)
    return tuple(values)
