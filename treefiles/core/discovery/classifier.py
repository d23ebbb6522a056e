# treefiles/core/discovery/classifier.py
import os
import stat
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple
import structlog

from treefiles.config.settings import WalkConfig
from treefiles.core.discovery.ignore_rules import IgnoreRuleSet

log = structlog.get_logger(__name__)


class Verdict(Enum):
    # what the walker does with a single entry.
    PRUNE = "prune"
    SKIP = "skip"
    DESCEND = "descend"
    EMIT = "emit"


@dataclass(frozen=True)
class Entry:
    path: str
    name: str
    is_dir: bool
    is_symlink: bool

    @classmethod
    def from_dir_entry(cls, dir_entry: os.DirEntry, path: str) -> "Entry":
        # symlinks are never followed, so a link to a directory is not a directory.
        return cls(
            path=path,
            name=dir_entry.name,
            is_dir=dir_entry.is_dir(follow_symlinks=False),
            is_symlink=dir_entry.is_symlink(),
        )

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> "Entry":
        return cls(
            path=path,
            name=os.path.basename(path) or path,
            is_dir=stat.S_ISDIR(st.st_mode),
            is_symlink=stat.S_ISLNK(st.st_mode),
        )


class Classification(NamedTuple):
    verdict: Verdict
    context: IgnoreRuleSet


class EntryClassifier:
    """
    Decides whether an entry is pruned, skipped, descended into or emitted.

    A directory is matched against the rule set it inherited. Only once it is
    known to be descended does it extend that set with its own rule file, so
    rule files under pruned directories are never read. The extended set is
    returned for the walker to hand to the directory's children.
    """

    def __init__(self, config: WalkConfig):
        self.config = config
        self._ignore_re = config.ignore_re
        self._match_re = config.match_re
        self._ignore_files_enabled = config.ignore_files_enabled

    def classify(self, entry: Entry, context: IgnoreRuleSet) -> Classification:
        # a rule file never matches its own directory, so the inherited set decides pruning.
        if self._is_excluded(entry, context):
            if entry.is_dir:
                log.debug("directory_pruned", path=entry.path)
                return Classification(Verdict.PRUNE, context)
            return Classification(Verdict.SKIP, context)

        if entry.is_dir and not entry.is_symlink:
            if self.config.use_scoped_ignore_files:
                context = context.extended_for_directory(entry.path, self.config.ignore_file_name)
            return Classification(Verdict.DESCEND, context)

        if self._match_re is not None and not self._match_re.search(entry.name):
            return Classification(Verdict.SKIP, context)
        return Classification(Verdict.EMIT, context)

    def _is_excluded(self, entry: Entry, context: IgnoreRuleSet) -> bool:
        if self._ignore_re.search(entry.name):
            return True
        return self._ignore_files_enabled and context.matches(entry.path, entry.is_dir)
