# treefiles/core/discovery/__init__.py
"""
Concurrent file discovery for treefiles.

This package walks a directory tree on a bounded set of threads, applies the
static ignore pattern and gitignore-style rule files, and streams matching
paths to the caller while the walk is still running.
"""
# Re-export the walk entry points for easier access
from .walker import FileWalk, iter_files, walk_files

__all__ = ["FileWalk", "iter_files", "walk_files"]
