# tests/helpers.py
"""Shared helpers for building trees on disk and running walks."""
import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Set, Tuple

from treefiles.config.settings import WalkConfig
from treefiles.core.discovery import walk_files


def make_tree(root: Path, files: Dict[str, str]) -> Path:
    """Creates `files` (relative posix path -> content) under `root`."""
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


def relative_set(paths: Iterable[str], root: Path) -> Set[str]:
    return {Path(os.path.relpath(p, root)).as_posix() for p in paths}


def collect(root: Path, **config_kwargs) -> Tuple[Set[str], Optional[BaseException]]:
    """Runs a walk to completion; returns (relative paths, terminal error)."""
    walk = walk_files(WalkConfig(root=root, **config_kwargs))
    paths = list(walk)
    error = walk.wait()
    return relative_set(paths, root), error
