from pathlib import Path

import pytest

from helpers import make_tree


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path_factory):
    """Keeps the developer's git config, user config file and env out of tests."""
    monkeypatch.delenv("TREEFILES_IGNORE_PATTERN", raising=False)
    monkeypatch.setattr(
        "treefiles.config.loader.USER_CONFIG_FILE",
        tmp_path_factory.mktemp("user_config") / "config.toml",
    )
    monkeypatch.setattr("treefiles.core.discovery.walker.global_ignore_file", lambda: None)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """a.txt, .git/config and sub/b.txt."""
    return make_tree(tmp_path, {
        "a.txt": "a",
        ".git/config": "[core]",
        "sub/b.txt": "b",
    })
