# treefiles/config/__init__.py
"""Configuration for treefiles: the WalkConfig dataclass and toml file loading."""
from .settings import WalkConfig

__all__ = ["WalkConfig"]
