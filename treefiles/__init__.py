"""treefiles: stream every file under a directory, honouring ignore rules."""

__version__ = "0.1.0"

from treefiles.logging_setup import configure_library_default

configure_library_default()

from treefiles.config.settings import WalkConfig
from treefiles.core.discovery import FileWalk, iter_files, walk_files

__all__ = ["__version__", "WalkConfig", "FileWalk", "iter_files", "walk_files"]
