# tests/test_classifier.py
"""Tests for per-entry prune/skip/descend/emit decisions."""
import os
from pathlib import Path

import pytest

from treefiles.config.settings import WalkConfig
from treefiles.core.discovery.classifier import Entry, EntryClassifier, Verdict
from treefiles.core.discovery.ignore_rules import EMPTY_RULE_SET, IgnoreRuleSet, load_rule_file

from helpers import make_tree


def file_entry(path: Path) -> Entry:
    return Entry(path=str(path), name=path.name, is_dir=False, is_symlink=False)


def dir_entry(path: Path) -> Entry:
    return Entry(path=str(path), name=path.name, is_dir=True, is_symlink=False)


def test_static_pattern_prunes_directories_and_skips_files(tmp_path: Path):
    classifier = EntryClassifier(WalkConfig(root=tmp_path))

    assert classifier.classify(dir_entry(tmp_path / ".git"), EMPTY_RULE_SET).verdict is Verdict.PRUNE
    assert classifier.classify(file_entry(tmp_path / ".hg"), EMPTY_RULE_SET).verdict is Verdict.SKIP
    assert classifier.classify(dir_entry(tmp_path / "src"), EMPTY_RULE_SET).verdict is Verdict.DESCEND
    assert classifier.classify(file_entry(tmp_path / "a.txt"), EMPTY_RULE_SET).verdict is Verdict.EMIT


def test_static_pattern_is_a_search_not_a_full_match(tmp_path: Path):
    classifier = EntryClassifier(WalkConfig(root=tmp_path, ignore_pattern=r"\.pyc"))

    assert classifier.classify(file_entry(tmp_path / "mod.pyc"), EMPTY_RULE_SET).verdict is Verdict.SKIP
    assert classifier.classify(file_entry(tmp_path / "mod.py"), EMPTY_RULE_SET).verdict is Verdict.EMIT


def test_symlinked_directory_is_emitted_not_descended(tmp_path: Path):
    classifier = EntryClassifier(WalkConfig(root=tmp_path))
    link = Entry(path=str(tmp_path / "link"), name="link", is_dir=False, is_symlink=True)

    assert classifier.classify(link, EMPTY_RULE_SET).verdict is Verdict.EMIT


def test_match_pattern_skips_non_matching_files_only(tmp_path: Path):
    classifier = EntryClassifier(WalkConfig(root=tmp_path, match_pattern=r"\.py$"))

    assert classifier.classify(file_entry(tmp_path / "a.py"), EMPTY_RULE_SET).verdict is Verdict.EMIT
    assert classifier.classify(file_entry(tmp_path / "a.txt"), EMPTY_RULE_SET).verdict is Verdict.SKIP
    # directories are still descended even though their names do not match.
    assert classifier.classify(dir_entry(tmp_path / "pkg"), EMPTY_RULE_SET).verdict is Verdict.DESCEND


def test_directory_with_rule_file_extends_context_for_children(tmp_path: Path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / ".gitignore").write_text("*.log\n")
    classifier = EntryClassifier(WalkConfig(root=tmp_path, use_scoped_ignore_files=True))

    inherited = IgnoreRuleSet()
    verdict, context = classifier.classify(dir_entry(sub), inherited)

    assert verdict is Verdict.DESCEND
    assert len(inherited) == 0
    assert len(context) == 1
    assert classifier.classify(file_entry(sub / "x.log"), context).verdict is Verdict.SKIP
    assert classifier.classify(file_entry(sub / "y.txt"), context).verdict is Verdict.EMIT


def test_rule_files_are_not_read_when_disabled(tmp_path: Path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / ".gitignore").write_text("*.log\n")
    classifier = EntryClassifier(WalkConfig(root=tmp_path))

    verdict, context = classifier.classify(dir_entry(sub), EMPTY_RULE_SET)
    assert verdict is Verdict.DESCEND
    assert context is EMPTY_RULE_SET


def test_context_is_not_consulted_when_ignore_files_are_off(tmp_path: Path):
    (tmp_path / "rules").write_text("*.log\n")
    context = IgnoreRuleSet([load_rule_file(tmp_path / "rules", str(tmp_path))])

    off = EntryClassifier(WalkConfig(root=tmp_path))
    on = EntryClassifier(WalkConfig(root=tmp_path, use_global_ignore_file=True))

    assert off.classify(file_entry(tmp_path / "x.log"), context).verdict is Verdict.EMIT
    assert on.classify(file_entry(tmp_path / "x.log"), context).verdict is Verdict.SKIP


def test_directory_excluded_by_its_parents_rules_is_pruned(tmp_path: Path):
    (tmp_path / ".gitignore").write_text("node_modules/\n")
    context = IgnoreRuleSet([load_rule_file(tmp_path / ".gitignore", str(tmp_path))])
    classifier = EntryClassifier(WalkConfig(root=tmp_path, use_scoped_ignore_files=True))

    verdict, _ = classifier.classify(dir_entry(tmp_path / "node_modules"), context)
    assert verdict is Verdict.PRUNE


def test_pruned_directories_never_have_their_rule_file_read(tmp_path: Path, monkeypatch):
    make_tree(tmp_path, {
        ".gitignore": "node_modules/\n",
        ".git/.gitignore": "*\n",
        "node_modules/.gitignore": "*\n",
        "src/.gitignore": "*.log\n",
    })
    context = IgnoreRuleSet([load_rule_file(tmp_path / ".gitignore", str(tmp_path))])
    classifier = EntryClassifier(WalkConfig(root=tmp_path, use_scoped_ignore_files=True))

    read = []

    def recording_load(rule_file_path, base_dir):
        read.append(Path(rule_file_path))
        return load_rule_file(rule_file_path, base_dir)

    monkeypatch.setattr("treefiles.core.discovery.ignore_rules.load_rule_file", recording_load)

    assert classifier.classify(dir_entry(tmp_path / ".git"), context).verdict is Verdict.PRUNE
    assert classifier.classify(dir_entry(tmp_path / "node_modules"), context).verdict is Verdict.PRUNE
    verdict, src_context = classifier.classify(dir_entry(tmp_path / "src"), context)

    assert verdict is Verdict.DESCEND
    assert len(src_context) == 2
    assert read == [tmp_path / "src" / ".gitignore"]


def test_entry_from_dir_entry_does_not_follow_symlinks(tmp_path: Path):
    (tmp_path / "real").mkdir()
    try:
        os.symlink(tmp_path / "real", tmp_path / "link", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")

    with os.scandir(tmp_path) as it:
        entries = {d.name: Entry.from_dir_entry(d, d.path) for d in it}

    assert entries["real"].is_dir and not entries["real"].is_symlink
    assert not entries["link"].is_dir and entries["link"].is_symlink
