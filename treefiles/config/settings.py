import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Pattern
import structlog

from treefiles.exceptions import ConfigError

log = structlog.get_logger(__name__)

IGNORE_PATTERN_ENV_VAR = "TREEFILES_IGNORE_PATTERN"
DEFAULT_IGNORE_PATTERN = r"^(\.git|\.hg|\.svn|_darcs|\.bzr)$"
DEFAULT_IGNORE_FILE_NAME = ".gitignore"
DEFAULT_CONCURRENCY = 16
DEFAULT_STREAM_CAPACITY = 20
UNBOUNDED_MAX_RESULTS = -1

def default_ignore_pattern() -> str:
    # the environment overrides the built-in vcs directory pattern.
    return os.environ.get(IGNORE_PATTERN_ENV_VAR) or DEFAULT_IGNORE_PATTERN

def _compile_pattern(pattern: str, option_name: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"invalid {option_name} pattern {pattern!r}: {e}") from e

# option name -> accepted type, checked before anything is compiled or compared.
_OPTION_TYPES = {
    "ignore_pattern": str,
    "match_pattern": (str, type(None)),
    "use_scoped_ignore_files": bool,
    "use_global_ignore_file": bool,
    "max_results": (int, type(None)),
    "ignore_file_name": str,
    "concurrency": int,
    "stream_capacity": int,
    "absolute": bool,
    "progress": bool,
}

def _check_option_type(name: str, value: object, expected) -> None:
    # bool is an int subclass, but `max_results = true` is still a mistake.
    is_bool_for_int = isinstance(value, bool) and expected is not bool
    if is_bool_for_int or not isinstance(value, expected):
        type_names = expected.__name__ if isinstance(expected, type) else " or ".join(
            t.__name__ for t in expected if t is not type(None)
        )
        raise ConfigError(f"{name} must be {type_names}, got {type(value).__name__} {value!r}")

@dataclass
class WalkConfig:
    # holds all configuration parameters for a single walk.
    root: Path = field(default_factory=lambda: Path("."))
    ignore_pattern: str = field(default_factory=default_ignore_pattern)
    match_pattern: Optional[str] = None
    use_scoped_ignore_files: bool = False
    use_global_ignore_file: bool = False
    max_results: Optional[int] = None
    ignore_file_name: str = DEFAULT_IGNORE_FILE_NAME
    concurrency: int = DEFAULT_CONCURRENCY
    stream_capacity: int = DEFAULT_STREAM_CAPACITY
    absolute: bool = False
    progress: bool = False

    # compiled state, not set directly by user flags.
    ignore_re: Pattern[str] = field(init=False, repr=False)
    match_re: Optional[Pattern[str]] = field(init=False, repr=False)

    def __post_init__(self):
        # compiles patterns once and normalises limits after instantiation.
        for name, expected in _OPTION_TYPES.items():
            _check_option_type(name, getattr(self, name), expected)
        self.root = Path(self.root)
        self.ignore_re = _compile_pattern(self.ignore_pattern, "ignore")
        self.match_re = _compile_pattern(self.match_pattern, "match") if self.match_pattern else None

        # anything below one means "no limit", like the -1 flag default.
        if self.max_results is not None and self.max_results < 1:
            self.max_results = None
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.stream_capacity < 1:
            raise ConfigError(f"stream capacity must be at least 1, got {self.stream_capacity}")

    @property
    def ignore_files_enabled(self) -> bool:
        return self.use_scoped_ignore_files or self.use_global_ignore_file
