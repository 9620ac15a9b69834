from pathlib import Path

import pytest
from typer.testing import CliRunner

from scour import __version__
from scour.cli import app, build_host
from scour.config_loader import load_config
from scour.terminal import normalize_key

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"SCOUR v{__version__}" in result.stdout


def test_search_lists_tracked_matches(git_repo: Path):
    result = runner.invoke(app, ["search", "foo", "--repo", str(git_repo)])

    assert result.exit_code == 0
    assert "notes.txt" in result.stdout
    assert "untracked.txt" not in result.stdout


def test_search_without_matches(git_repo: Path):
    result = runner.invoke(app, ["search", "zzz-nowhere", "--repo", str(git_repo)])

    assert result.exit_code == 0
    assert "No matches found" in result.stdout


def test_replace_end_to_end(git_repo: Path):
    # Results come back sorted by path: notes.txt:1, src/app.py:1, src/app.py:3.
    # Move down and deselect both app.py matches, then replace.
    keys = "foo\nbar\nj\nspace\nj\nspace\nr\n"
    result = runner.invoke(app, ["replace", "--repo", str(git_repo)], input=keys)

    assert result.exit_code == 0, result.stdout
    assert "Replaced" in result.stdout
    assert (git_repo / "src" / "app.py").read_text() == "import foo\n\nfoo.run()\nprint('done')\n"
    assert (git_repo / "notes.txt").read_text() == "bar bar\nbaz\n"
    assert (git_repo / "untracked.txt").read_text() == "foo is not tracked\n"


def test_replace_cancelled_at_pattern_prompt(git_repo: Path):
    result = runner.invoke(app, ["replace", "--repo", str(git_repo)], input="\n")

    assert result.exit_code == 0
    assert "Search cancelled - empty pattern" in result.stdout


def test_init_writes_repo_config(tmp_path: Path):
    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 0
    assert (tmp_path / ".scour" / "config.yaml").exists()


@pytest.mark.parametrize("raw,key", [
    ("", "Return"),
    (" ", "space"),
    ("esc", "Escape"),
    ("Down", "Down"),
    ("r", "r"),
])
def test_normalize_key(raw: str, key: str):
    assert normalize_key(raw) == key


def test_build_host_installs_every_plugin(tmp_path: Path):
    host = build_host(tmp_path, load_config(tmp_path))

    assert {"start_search_replace", "hide_references_panel", "md_src_enter"} <= set(host.runtime.actions)
    assert host.modes["markdown-source"].read_only is False
