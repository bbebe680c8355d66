"""CLI entrypoint for lambdapack."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from lambdapack import __version__
from lambdapack.config import Settings
from lambdapack.controllers import (
    CacheListCommand,
    DeleteCommand,
    ExtractCommand,
    LifecycleCommand,
    PackageCommand,
    PackagerCliController,
    TargetOverrides,
)
from lambdapack.errors import PackagingError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = PackagerCliController()

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _target_options(func: Callable) -> Callable:
    func = click.option(
        "--goarch",
        default=None,
        help="Target architecture; overrides LAMBDAPACK_TARGET_ARCH.",
    )(func)
    return click.option(
        "--goos",
        default=None,
        help="Target operating system; overrides LAMBDAPACK_TARGET_OS.",
    )(func)


_CACHE_DIR_OPTION = click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Artifact cache directory; overrides LAMBDAPACK_CACHE_DIR.",
)


_SOURCE_ARGUMENT = click.argument(
    "source_dir",
    type=click.Path(path_type=Path),
)
_STATE_OPTION = click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="JSON file holding the resource state between calls.",
)


@click.group()
@click.version_option(version=__version__, prog_name="lambdapack")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level; overrides LAMBDAPACK_LOG_LEVEL.",
)
def lambdapack(log_level: str | None) -> None:
    """Reproducible Go Lambda packaging with a content-addressed cache."""

    level = (log_level or Settings.from_env().log_level).upper()
    if level not in _LOG_LEVELS:
        raise click.BadParameter(
            f"Unsupported log level: {level}",
            param_hint="LAMBDAPACK_LOG_LEVEL",
        )
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@lambdapack.command("create")
@_SOURCE_ARGUMENT
@_STATE_OPTION
@_CACHE_DIR_OPTION
@_target_options
def create(
    source_dir: Path,
    state_path: Path,
    cache_dir: Path | None,
    goos: str | None,
    goarch: str | None,
) -> None:
    """Build, package and cache SOURCE_DIR; record the new resource state."""

    _run(
        lambda: CONTROLLER.create(
            LifecycleCommand(
                source_dir=source_dir,
                state_path=state_path,
                overrides=TargetOverrides(cache_dir=cache_dir, target_os=goos, target_arch=goarch),
            ),
        ),
    )


@lambdapack.command("read")
@_SOURCE_ARGUMENT
@_STATE_OPTION
@_CACHE_DIR_OPTION
@_target_options
def read(
    source_dir: Path,
    state_path: Path,
    cache_dir: Path | None,
    goos: str | None,
    goarch: str | None,
) -> None:
    """Rebuild SOURCE_DIR and swap the cached artifact if its digest drifted."""

    _run(
        lambda: CONTROLLER.read(
            LifecycleCommand(
                source_dir=source_dir,
                state_path=state_path,
                overrides=TargetOverrides(cache_dir=cache_dir, target_os=goos, target_arch=goarch),
            ),
        ),
    )


@lambdapack.command("update")
@_SOURCE_ARGUMENT
@_STATE_OPTION
@_CACHE_DIR_OPTION
@_target_options
def update(
    source_dir: Path,
    state_path: Path,
    cache_dir: Path | None,
    goos: str | None,
    goarch: str | None,
) -> None:
    """Apply source changes to the cached artifact."""

    _run(
        lambda: CONTROLLER.update(
            LifecycleCommand(
                source_dir=source_dir,
                state_path=state_path,
                overrides=TargetOverrides(cache_dir=cache_dir, target_os=goos, target_arch=goarch),
            ),
        ),
    )


@lambdapack.command("delete")
@_STATE_OPTION
def delete(state_path: Path) -> None:
    """Remove the cached artifact at the path recorded in the state file."""

    _run(lambda: CONTROLLER.delete(DeleteCommand(state_path=state_path)))


@lambdapack.command("package")
@_SOURCE_ARGUMENT
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Where to write the zip archive.",
)
@_target_options
def package(
    source_dir: Path,
    output_path: Path,
    goos: str | None,
    goarch: str | None,
) -> None:
    """Build and package SOURCE_DIR without touching the cache."""

    _run(
        lambda: CONTROLLER.package(
            PackageCommand(
                source_dir=source_dir,
                output_path=output_path,
                overrides=TargetOverrides(target_os=goos, target_arch=goarch),
            ),
        ),
    )


@lambdapack.command("extract")
@click.argument("archive_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("dest_dir", type=click.Path(file_okay=False, path_type=Path))
def extract(archive_path: Path, dest_dir: Path) -> None:
    """Unpack ARCHIVE_PATH into DEST_DIR, refusing entries that escape it."""

    _run(lambda: CONTROLLER.extract(ExtractCommand(archive_path=archive_path, dest_dir=dest_dir)))


@lambdapack.command("cache-ls")
@_CACHE_DIR_OPTION
def cache_ls(cache_dir: Path | None) -> None:
    """List cached artifacts."""

    _run(lambda: CONTROLLER.list_cache(CacheListCommand(overrides=TargetOverrides(cache_dir))))


def _run(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except (PackagingError, ValueError, TypeError, OSError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    lambdapack()
