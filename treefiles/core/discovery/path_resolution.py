import os
import stat
from pathlib import Path
from typing import Union
import structlog

from treefiles.exceptions import RootError

log = structlog.get_logger(__name__)

def to_slash(path: str) -> str:
    # converts os separators to forward slashes for output.
    if os.sep == "/":
        return path
    return path.replace(os.sep, "/")

def join_child(parent: str, name: str) -> str:
    # children of "." are reported without a "./" prefix.
    if parent == os.curdir:
        return name
    return os.path.join(parent, name)

def prepare_root(root: Union[str, Path], absolute: bool = False) -> str:
    # determines the string form of the walk root; every emitted path starts with it.
    root_str = os.path.expanduser(os.fspath(root)) or os.curdir
    if absolute:
        return os.path.abspath(root_str)
    if os.path.isabs(root_str):
        return os.path.normpath(root_str)
    try:
        return os.path.relpath(os.path.abspath(root_str), os.getcwd())
    except ValueError:
        # different drive on windows; keep the user's spelling.
        return os.path.normpath(root_str)

def validate_root(root: str) -> os.stat_result:
    # the root must be an existing, readable directory before any traversal starts.
    try:
        st = os.stat(root)
    except FileNotFoundError:
        raise RootError(f"{root}: no such file or directory") from None
    except OSError as e:
        raise RootError(f"{root}: {e.strerror or e}") from e

    if not stat.S_ISDIR(st.st_mode):
        raise RootError(f"{root!r} is not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise RootError(f"{root}: permission denied")

    log.debug("walk_root_validated", root=root)
    return st
