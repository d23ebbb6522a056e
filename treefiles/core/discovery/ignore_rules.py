# treefiles/core/discovery/ignore_rules.py
"""
Gitignore-style rule sets used while walking a tree.

An IgnoreRuleSet is an immutable tuple of matchers. Extending a set for a
directory always produces a new set, so sibling traversals running on other
threads can share the parent's set safely.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pathspec
import structlog

log = structlog.get_logger(__name__)


def _relative_to_base(path: str, base_dir: str) -> Optional[str]:
    # returns path relative to base_dir in posix form, or None when outside it.
    if base_dir == os.curdir:
        if os.path.isabs(path) or path == os.curdir or path.startswith(os.pardir + os.sep):
            return None
        rel = path
    else:
        prefix = base_dir if base_dir.endswith(os.sep) else base_dir + os.sep
        if not path.startswith(prefix):
            return None
        rel = path[len(prefix):]
    if not rel:
        return None
    return rel.replace(os.sep, "/")


@dataclass(frozen=True)
class ScopedMatcher:
    # a compiled rule file, scoped to the subtree of the directory it came from.
    spec: pathspec.PathSpec
    base_dir: str
    source: str = ""

    def matches(self, path: str, is_dir: bool) -> bool:
        rel = _relative_to_base(path, self.base_dir)
        if rel is None:
            return False
        if is_dir:
            rel += "/"
        return self.spec.match_file(rel)


def load_rule_file(rule_file_path: Path, base_dir: str) -> Optional[ScopedMatcher]:
    # loads and compiles gitignore patterns from a given file.
    # returns None when the file is absent, unreadable or invalid.
    if not rule_file_path.is_file():
        return None
    try:
        with rule_file_path.open("r", encoding="utf-8", errors="ignore") as f_obj:
            spec = pathspec.GitIgnoreSpec.from_lines(f_obj)
    except (OSError, ValueError, TypeError) as e:
        log.warning("failed_to_parse_rule_file", path=str(rule_file_path), error=str(e))
        return None
    log.debug("rule_file_loaded", path=str(rule_file_path), patterns=len(spec.patterns))
    return ScopedMatcher(spec=spec, base_dir=base_dir, source=str(rule_file_path))


class IgnoreRuleSet:
    """
    Immutable, ordered collection of matchers.

    `matches` ORs the result of every matcher, so construction order never
    changes the answer and an empty set never matches.
    """

    __slots__ = ("_matchers",)

    def __init__(self, matchers: Iterable[ScopedMatcher] = ()):
        self._matchers: Tuple[ScopedMatcher, ...] = tuple(matchers)

    def __len__(self) -> int:
        return len(self._matchers)

    def __iter__(self):
        return iter(self._matchers)

    def __repr__(self) -> str:
        return f"IgnoreRuleSet({[m.source or m.base_dir for m in self._matchers]!r})"

    def matches(self, path: str, is_dir: bool) -> bool:
        return any(m.matches(path, is_dir) for m in self._matchers)

    def extended(self, matcher: ScopedMatcher) -> "IgnoreRuleSet":
        return IgnoreRuleSet(self._matchers + (matcher,))

    def extended_for_directory(self, dir_path: str, rule_file_name: str) -> "IgnoreRuleSet":
        """
        Returns the rule set for the children of `dir_path`.

        If `dir_path` holds a loadable rule file, the result is a new set with
        that file's matcher appended. Otherwise this same set is returned.
        """
        matcher = load_rule_file(Path(dir_path) / rule_file_name, dir_path)
        if matcher is None:
            return self
        return self.extended(matcher)


EMPTY_RULE_SET = IgnoreRuleSet()
