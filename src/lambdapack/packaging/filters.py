"""Ignore-pattern filter deciding which source paths go into the archive."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import pathspec

from lambdapack.errors import FilterParseFailed

logger = logging.getLogger(__name__)

DOTFILE_RULE = ".*"


@dataclass(frozen=True, slots=True)
class IgnoreRuleSet:
    """Ordered gitignore-style rules; a later rule overrides an earlier one."""

    lines: tuple[str, ...]

    @classmethod
    def assemble(
        cls,
        rule_sources: Iterable[bytes | None],
        *,
        forced_includes: Sequence[str] = (),
    ) -> IgnoreRuleSet:
        lines: list[str] = [DOTFILE_RULE]
        for index, source in enumerate(rule_sources):
            if source is None:
                continue
            try:
                text = source.decode("utf-8")
            except UnicodeDecodeError as error:
                raise FilterParseFailed(
                    f"Ignore source #{index} is not valid UTF-8: {error}",
                ) from error
            lines.extend(text.splitlines())
        lines.extend(f"!{name}" for name in forced_includes)
        return cls(lines=tuple(lines))


class PathFilter:
    """Predicate over archive-relative POSIX paths."""

    def __init__(self, rules: IgnoreRuleSet) -> None:
        self.rules = rules
        try:
            self._spec = pathspec.GitIgnoreSpec.from_lines(rules.lines)
        except ValueError as error:
            raise FilterParseFailed(f"Invalid ignore pattern: {error}") from error

    def includes(self, relative_path: str, *, is_dir: bool = False) -> bool:
        candidate = relative_path.strip("/")
        if not candidate:
            return True
        if is_dir:
            candidate += "/"
        return not self._spec.match_file(candidate)

    def __call__(self, relative_path: str, *, is_dir: bool = False) -> bool:
        return self.includes(relative_path, is_dir=is_dir)


def compile_filter(
    rule_sources: Iterable[bytes | None],
    *,
    forced_includes: Sequence[str] = (),
) -> PathFilter:
    """Build a filter from ignore-file contents plus defaults.

    Rules are applied in order: dotfiles are excluded, then every rule source
    (``None`` meaning an absent file), then ``forced_includes`` are re-included.
    The last matching rule decides.
    """

    rules = IgnoreRuleSet.assemble(rule_sources, forced_includes=forced_includes)
    logger.debug("Compiled %d ignore rules", len(rules.lines))
    return PathFilter(rules)


def read_rule_source(path: Path) -> bytes | None:
    """Return ignore-file bytes, or ``None`` when the file does not exist."""

    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
