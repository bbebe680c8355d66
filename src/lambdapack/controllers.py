"""Controllers for packaging and cache lifecycle CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lambdapack.cache import (
    CacheReconciler,
    CacheStore,
    ResourceState,
    clear_state,
    read_state,
    write_state,
)
from lambdapack.config import Settings
from lambdapack.packaging import Packager, SourceSpec, extract_archive


@dataclass(slots=True)
class TargetOverrides:
    """Optional CLI overrides for the compile target and cache location."""

    cache_dir: Path | None = None
    target_os: str | None = None
    target_arch: str | None = None


@dataclass(slots=True)
class LifecycleCommand:
    """CLI inputs for create/read/update commands."""

    source_dir: Path
    state_path: Path
    overrides: TargetOverrides


@dataclass(slots=True)
class DeleteCommand:
    """CLI inputs for delete command; the state file records the exact cache path."""

    state_path: Path


@dataclass(slots=True)
class PackageCommand:
    """CLI inputs for a one-off package without touching the cache."""

    source_dir: Path
    output_path: Path
    overrides: TargetOverrides


@dataclass(slots=True)
class ExtractCommand:
    """CLI inputs for archive extraction."""

    archive_path: Path
    dest_dir: Path


@dataclass(slots=True)
class CacheListCommand:
    """CLI inputs for cache listing."""

    overrides: TargetOverrides


class PackagerCliController:
    """Coordinates packaging and lifecycle command execution."""

    def create(self, command: LifecycleCommand) -> list[str]:
        settings = _settings(command.overrides)
        state = _reconciler(settings).create(_source_spec(command.source_dir, settings))
        write_state(command.state_path, state)
        return [_render_state("created", state)]

    def read(self, command: LifecycleCommand) -> list[str]:
        settings = _settings(command.overrides)
        current = _load_state(command.state_path)
        refreshed = _reconciler(settings).read(
            _source_spec(command.source_dir, settings),
            current,
        )
        if refreshed is None:
            clear_state(command.state_path)
            return [f"gone: source={command.source_dir} state cleared"]
        write_state(command.state_path, refreshed)
        return [_render_state(_transition_label(current, refreshed), refreshed)]

    def update(self, command: LifecycleCommand) -> list[str]:
        settings = _settings(command.overrides)
        current = _load_state(command.state_path)
        updated = _reconciler(settings).update(
            _source_spec(command.source_dir, settings),
            current,
        )
        write_state(command.state_path, updated)
        return [_render_state(_transition_label(current, updated), updated)]

    def delete(self, command: DeleteCommand) -> list[str]:
        settings = _settings(TargetOverrides())
        if not command.state_path.exists():
            return [f"deleted: nothing recorded at {command.state_path}"]
        current = _load_state(command.state_path)
        _reconciler(settings).delete(current)
        clear_state(command.state_path)
        return [f"deleted: path={current.path} digest={current.digest}"]

    def package(self, command: PackageCommand) -> list[str]:
        settings = _settings(command.overrides)
        artifact = Packager.from_settings(settings).package(
            _source_spec(command.source_dir, settings),
        )
        command.output_path.parent.mkdir(parents=True, exist_ok=True)
        command.output_path.write_bytes(artifact.data)
        return [
            f"packaged: path={command.output_path} sha256={artifact.digest.hex} "
            f"base64sha256={artifact.digest.base64} size={artifact.size} "
            f"entries={len(artifact.entries)}",
        ]

    def extract(self, command: ExtractCommand) -> list[str]:
        written = extract_archive(command.archive_path.read_bytes(), command.dest_dir)
        lines = [f"extracted: dest={command.dest_dir} entries={len(written)}"]
        lines.extend(f"  {path}" for path in written)
        return lines

    def list_cache(self, command: CacheListCommand) -> list[str]:
        settings = _settings(command.overrides)
        store = CacheStore(settings.cache.root_dir)
        entries = store.entries()
        lines = [f"cache: root={store.root_dir} entries={len(entries)}"]
        lines.extend(f"  {path.name} size={path.stat().st_size}" for path in entries)
        return lines


def _settings(overrides: TargetOverrides) -> Settings:
    settings = Settings.from_env(cache_dir=overrides.cache_dir)
    if overrides.target_os:
        settings.toolchain.target_os = overrides.target_os
    if overrides.target_arch:
        settings.toolchain.target_arch = overrides.target_arch
    settings.validate()
    return settings


def _reconciler(settings: Settings) -> CacheReconciler:
    return CacheReconciler(
        CacheStore(settings.cache.root_dir),
        Packager.from_settings(settings),
    )


def _source_spec(source_dir: Path, settings: Settings) -> SourceSpec:
    return SourceSpec(source_dir=source_dir.absolute(), target_env=settings.target_env())


def _load_state(path: Path) -> ResourceState:
    if not path.exists():
        raise ValueError(f"No resource state at {path}; run create first.")
    return read_state(path)


def _transition_label(current: ResourceState, new: ResourceState) -> str:
    return "unchanged" if current.path == new.path else "replaced"


def _render_state(label: str, state: ResourceState) -> str:
    return (
        f"{label}: path={state.path} digest={state.digest} size={state.size} "
        f"base64sha256={state.base64_sha256} md5={state.md5}"
    )
