"""Subprocess-based Go compiler invoker."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Mapping

from lambdapack.errors import BuildFailed, ToolchainNotFound
from lambdapack.toolchain.base import BuildRequest, BuildResult

logger = logging.getLogger(__name__)

# Inherited from the invoking process only so the child can start at all.
BASELINE_ENV_KEYS = (
    "PATH",
    "HOME",
    "TMPDIR",
    "TEMP",
    "TMP",
    "SYSTEMROOT",
    "LOCALAPPDATA",
    "USERPROFILE",
)

_CANNOT_EXECUTE_EXIT_CODE = 126


class GoToolchain:
    """Run ``<executable> build -o <output> <source>`` under an isolated environment."""

    def __init__(self, executable: str = "go", *, search_path: str | None = None) -> None:
        self.executable = executable
        self.search_path = search_path

    def locate(self) -> str:
        resolved = shutil.which(self.executable, path=self.search_path)
        if resolved is None:
            raise ToolchainNotFound(self.executable)
        return resolved

    def build(self, request: BuildRequest) -> BuildResult:
        executable = self.locate()
        command = [
            executable,
            "build",
            "-o",
            str(request.output_path),
            str(request.source_dir),
        ]
        env = build_child_env(request.env)
        logger.info(
            "Building %s -> %s (%s)",
            request.source_dir,
            request.output_path,
            " ".join(f"{key}={value}" for key, value in sorted(request.env.items())),
        )

        try:
            completed = subprocess.run(  # noqa: S603
                command,
                env=env,
                cwd=request.source_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=False,
            )
        except FileNotFoundError as error:
            raise ToolchainNotFound(self.executable) from error
        except OSError as error:
            raise BuildFailed(
                f"Failed to start {executable}: {error}",
                exit_code=_CANNOT_EXECUTE_EXIT_CODE,
            ) from error

        output = completed.stdout or ""
        if completed.returncode != 0:
            logger.warning(
                "Build of %s failed with exit code %d",
                request.source_dir,
                completed.returncode,
            )
            raise BuildFailed(output, exit_code=completed.returncode)

        return BuildResult(output_path=request.output_path, output=output, command=command)


def build_child_env(
    explicit: Mapping[str, str],
    *,
    inherited: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Baseline variables from ``inherited`` overlaid by ``explicit``; nothing else."""

    source = os.environ if inherited is None else inherited
    env = {key: source[key] for key in BASELINE_ENV_KEYS if key in source}
    env.update(explicit)
    return env
