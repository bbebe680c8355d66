from __future__ import annotations

from pathlib import Path

import allure
import pytest

from lambdapack.errors import BuildFailed, ToolchainNotFound
from lambdapack.toolchain import BuildRequest, GoToolchain, build_child_env

pytestmark = [
    allure.epic("Build"),
    allure.feature("Compiler Invoker"),
]

TARGET_ENV = {"GOOS": "linux", "GOARCH": "amd64"}


def test_missing_toolchain_raises_toolchain_not_found(source_dir: Path) -> None:
    toolchain = GoToolchain("lambdapack-no-such-compiler")

    with pytest.raises(ToolchainNotFound, match="lambdapack-no-such-compiler"):
        toolchain.build(BuildRequest(source_dir=source_dir, output_path=source_dir / "main"))

    assert not (source_dir / "main").exists()


def test_build_writes_binary_with_target_env(toolchain: GoToolchain, source_dir: Path) -> None:
    output_path = source_dir / "main"

    result = toolchain.build(
        BuildRequest(source_dir=source_dir, output_path=output_path, env=TARGET_ENV),
    )

    assert result.output_path == output_path
    assert result.command[1:] == ["build", "-o", str(output_path), str(source_dir)]
    assert "built main" in result.output
    binary = output_path.read_text("utf-8")
    assert "GOOS=linux" in binary
    assert "GOARCH=amd64" in binary
    assert "package main" in binary


def test_build_does_not_inherit_ambient_environment(
    toolchain: GoToolchain,
    source_dir: Path,
    monkeypatch,
) -> None:
    monkeypatch.setenv("LAMBDAPACK_TEST_LEAK", "ambient")
    monkeypatch.setenv("GOOS", "darwin")
    output_path = source_dir / "main"

    toolchain.build(BuildRequest(source_dir=source_dir, output_path=output_path, env={}))

    binary = output_path.read_text("utf-8")
    assert "LEAK=\n" in binary
    assert "GOOS=\n" in binary


def test_build_failure_carries_combined_output(toolchain: GoToolchain, source_dir: Path) -> None:
    (source_dir / "broken.go").write_text("SYNTAX ERROR", "utf-8")

    with pytest.raises(BuildFailed) as error:
        toolchain.build(
            BuildRequest(source_dir=source_dir, output_path=source_dir / "main", env=TARGET_ENV),
        )

    assert error.value.exit_code == 1
    assert "broken.go:1:1: syntax error: unexpected token" in error.value.output
    assert "stderr detail" in error.value.output
    assert "syntax error" in str(error.value)
    assert error.value.stage.value == "build"


def test_child_env_is_baseline_plus_explicit() -> None:
    env = build_child_env(
        {"GOOS": "linux", "PATH": "/opt/go/bin"},
        inherited={"PATH": "/usr/bin", "HOME": "/home/dev", "AWS_SECRET_ACCESS_KEY": "x"},
    )

    assert env == {"PATH": "/opt/go/bin", "HOME": "/home/dev", "GOOS": "linux"}
