from __future__ import annotations

import shutil
from pathlib import Path

import allure
import pytest

from lambdapack.cache import CacheReconciler, CacheStore, ResourceState
from lambdapack.errors import BuildFailed, CacheWriteFailed, InvalidSource
from lambdapack.packaging import Packager, SourceSpec, compute_digest

pytestmark = [
    allure.epic("Artifact Cache"),
    allure.feature("Lifecycle Reconciliation"),
]

TARGET_ENV = {"GOOS": "linux", "GOARCH": "amd64"}


@pytest.fixture()
def store(tmp_path: Path) -> CacheStore:
    return CacheStore(tmp_path / "cache")


@pytest.fixture()
def reconciler(store: CacheStore, packager: Packager) -> CacheReconciler:
    return CacheReconciler(store, packager)


def _spec(source_dir: Path) -> SourceSpec:
    return SourceSpec(source_dir=source_dir, target_env=TARGET_ENV)


def _snapshot(root: Path) -> dict[str, tuple[int, int]]:
    """Inode and mtime per entry; any write or rename changes it."""
    return {
        path.name: (path.stat().st_ino, path.stat().st_mtime_ns)
        for path in sorted(root.iterdir())
    }


def test_create_persists_artifact_under_its_digest(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))

    data = state.path.read_bytes()
    digest = compute_digest(data)
    assert state.digest == digest.hex
    assert state.path == store.path_for(digest)
    assert state.size == len(data)
    assert state.base64_sha256 == digest.base64
    assert state.md5 == digest.md5
    assert not (source_dir / "main").exists()


@pytest.mark.parametrize("kind", ["missing", "file"])
def test_create_rejects_invalid_source(
    reconciler: CacheReconciler,
    store: CacheStore,
    tmp_path: Path,
    kind: str,
) -> None:
    source = tmp_path / "not-a-dir"
    if kind == "file":
        source.write_text("x", "utf-8")

    with pytest.raises(InvalidSource):
        reconciler.create(_spec(source))

    assert not store.root_dir.exists()


def test_repeated_read_and_update_do_not_touch_cache(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
) -> None:
    created = reconciler.create(_spec(source_dir))
    first = reconciler.read(_spec(source_dir), created)
    before = _snapshot(store.root_dir)

    second = reconciler.read(_spec(source_dir), first)
    third = reconciler.update(_spec(source_dir), second)

    assert created == first == second == third
    assert _snapshot(store.root_dir) == before


def test_update_replaces_entry_on_drift(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
) -> None:
    old = reconciler.create(_spec(source_dir))

    (source_dir / "handler").write_text("handler v2\n", "utf-8")
    new = reconciler.update(_spec(source_dir), old)

    assert new.digest != old.digest
    assert new.path != old.path
    assert not old.path.exists()
    assert compute_digest(new.path.read_bytes()).hex == new.digest
    assert store.entries() == [new.path]


def test_read_detects_drift_like_update(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
) -> None:
    old = reconciler.create(_spec(source_dir))

    (source_dir / "main.go").write_text("package main\n\nfunc main() { run() }\n", "utf-8")
    new = reconciler.read(_spec(source_dir), old)

    assert new is not None
    assert new.path != old.path
    assert store.entries() == [new.path]


def test_ignored_file_does_not_cause_drift(
    reconciler: CacheReconciler,
    source_dir: Path,
) -> None:
    old = reconciler.create(_spec(source_dir))

    (source_dir / "scratch.tmp").write_text("scratch", "utf-8")

    assert reconciler.update(_spec(source_dir), old) == old


def test_read_rewrites_missing_entry_for_unchanged_digest(
    reconciler: CacheReconciler,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))
    state.path.unlink()

    refreshed = reconciler.read(_spec(source_dir), state)

    assert refreshed == state
    assert state.path.exists()


def test_read_clears_resource_when_source_is_gone(
    reconciler: CacheReconciler,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))
    shutil.rmtree(source_dir)

    assert reconciler.read(_spec(source_dir), state) is None
    assert state.path.exists()


def test_update_rejects_missing_source(
    reconciler: CacheReconciler,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))
    shutil.rmtree(source_dir)

    with pytest.raises(InvalidSource):
        reconciler.update(_spec(source_dir), state)


def test_build_failure_keeps_current_entry(
    reconciler: CacheReconciler,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))
    (source_dir / "broken.go").write_text("SYNTAX ERROR", "utf-8")

    with pytest.raises(BuildFailed):
        reconciler.update(_spec(source_dir), state)

    assert state.path.exists()


def test_failed_write_propagates_and_keeps_old_entry(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
    monkeypatch,
) -> None:
    old = reconciler.create(_spec(source_dir))
    (source_dir / "handler").write_text("handler v2\n", "utf-8")

    def _failing_write(digest, data):
        raise CacheWriteFailed(store.path_for(digest), "no space left on device")

    monkeypatch.setattr(store, "write", _failing_write)

    with pytest.raises(CacheWriteFailed, match="no space left"):
        reconciler.update(_spec(source_dir), old)

    assert old.path.exists()


def test_resources_with_identical_source_share_an_entry(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
    tmp_path: Path,
) -> None:
    twin = tmp_path / "twin"
    shutil.copytree(source_dir, twin)

    first = reconciler.create(_spec(source_dir))
    second = reconciler.create(_spec(twin))

    assert first.path == second.path
    assert store.entries() == [first.path]
    assert compute_digest(first.path.read_bytes()).hex == first.digest


def test_delete_is_idempotent(
    reconciler: CacheReconciler,
    store: CacheStore,
    source_dir: Path,
) -> None:
    state = reconciler.create(_spec(source_dir))

    reconciler.delete(state)
    reconciler.delete(state)

    assert not state.path.exists()
    assert store.entries() == []


def test_delete_of_never_written_path_is_a_noop(
    reconciler: CacheReconciler,
    tmp_path: Path,
) -> None:
    reconciler.delete(
        ResourceState(
            digest="0" * 64,
            path=tmp_path / "cache" / f"{'0' * 64}.zip",
            size=0,
            base64_sha256="",
            md5="",
        ),
    )
