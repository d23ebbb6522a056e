# treefiles/main.py
"""Main entry point for the treefiles CLI application."""

from treefiles.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="treefiles")

if __name__ == '__main__':
    entrypoint()
