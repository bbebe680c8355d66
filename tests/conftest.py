"""Shared test fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from lambdapack.packaging import Packager
from lambdapack.toolchain import GoToolchain

# Stands in for `go build -o <output> <source>`: concatenates *.go sources and
# the target env into the "binary", fails on sources containing SYNTAX ERROR.
_FAKE_GO_SCRIPT = """\
#!{python}
import os
import sys
from pathlib import Path


def main(argv):
    if len(argv) != 4 or argv[0] != "build" or argv[1] != "-o":
        print("usage: go build -o <output> <source>; got " + repr(argv), file=sys.stderr)
        return 2
    output, source = Path(argv[2]), Path(argv[3])
    sources = sorted(source.glob("*.go"))
    for path in sources:
        if "SYNTAX ERROR" in path.read_text():
            print(path.name + ":1:1: syntax error: unexpected token")
            print("stderr detail", file=sys.stderr)
            return 1
    lines = [
        "GOOS=" + os.environ.get("GOOS", ""),
        "GOARCH=" + os.environ.get("GOARCH", ""),
        "LEAK=" + os.environ.get("LAMBDAPACK_TEST_LEAK", ""),
    ]
    lines.extend(path.read_text() for path in sources)
    output.write_text("\\n".join(lines))
    print("built " + output.name)
    return 0


sys.exit(main(sys.argv[1:]))
"""


@pytest.fixture()
def fake_go(tmp_path: Path) -> Path:
    """Executable fake compiler living outside every source tree."""
    if os.name == "nt":
        pytest.skip("fake toolchain relies on a POSIX shebang")
    bin_dir = tmp_path / "toolbin"
    bin_dir.mkdir()
    script = bin_dir / "go"
    script.write_text(_FAKE_GO_SCRIPT.format(python=sys.executable), "utf-8")
    script.chmod(0o755)
    return script


@pytest.fixture()
def toolchain(fake_go: Path) -> GoToolchain:
    return GoToolchain(fake_go.name, search_path=str(fake_go.parent))


@pytest.fixture()
def packager(toolchain: GoToolchain) -> Packager:
    return Packager(toolchain)


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    """Go function with a handler file and a .gitignore excluding *.tmp."""
    root = tmp_path / "function"
    root.mkdir()
    (root / "main.go").write_text("package main\n\nfunc main() {}\n", "utf-8")
    (root / "handler").write_text("handler v1\n", "utf-8")
    (root / ".gitignore").write_text("*.tmp\n", "utf-8")
    return root
