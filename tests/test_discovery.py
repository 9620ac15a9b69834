import subprocess
from pathlib import Path

import pytest

from scour.discovery import MAX_RESULTS, Discovery, DiscoveryError, build_grep_command
from tests.conftest import grep_runner


def test_grep_command_modes():
    assert build_grep_command("foo", False) == [
        "git", "-c", "core.quotePath=false", "grep", "-n", "--column", "-I", "-F", "--", "foo",
    ]
    assert build_grep_command("f(o)+", True)[-3:] == ["-E", "--", "f(o)+"]


@pytest.mark.asyncio
async def test_caps_results_in_backend_order(tmp_path: Path):
    lines = [f"file{i}.txt:{i + 1}:1:hit {i}" for i in range(500)]
    discovery = Discovery(tmp_path, runner=grep_runner(lines))

    matches = await discovery.run("hit", False)

    assert MAX_RESULTS == 200
    assert len(matches) == 200
    assert [m.file for m in matches] == [f"file{i}.txt" for i in range(200)]


@pytest.mark.asyncio
async def test_unparseable_and_blank_lines_are_dropped(tmp_path: Path):
    lines = ["a.txt:1:1:foo", "", "Binary file x matches", "b.txt:2:3:foo"]
    discovery = Discovery(tmp_path, runner=grep_runner(lines))

    matches = await discovery.run("foo")

    assert [(m.file, m.line, m.column) for m in matches] == [("a.txt", 1, 1), ("b.txt", 2, 3)]


@pytest.mark.asyncio
async def test_nonzero_exit_means_no_matches(tmp_path: Path):
    discovery = Discovery(tmp_path, runner=grep_runner([], exit_code=1))
    assert await discovery.run("nothing") == []

    broken = Discovery(tmp_path, runner=grep_runner([], exit_code=128, stderr="fatal: not a git repository"))
    assert await broken.run("nothing") == []


@pytest.mark.asyncio
async def test_spawn_failure_raises_discovery_error(tmp_path: Path):
    async def missing_git(cmd, cwd):
        raise FileNotFoundError(2, "No such file or directory", "git")

    discovery = Discovery(tmp_path, runner=missing_git)
    with pytest.raises(DiscoveryError):
        await discovery.run("foo")


@pytest.mark.asyncio
async def test_regex_flag_reaches_backend(tmp_path: Path):
    runner = grep_runner([])
    await Discovery(tmp_path, runner=runner).run("a|b", is_regex=True)
    assert "-E" in runner.calls[0]


@pytest.mark.asyncio
async def test_real_git_grep_searches_tracked_files_only(git_repo: Path):
    matches = await Discovery(git_repo).run("foo", False)

    files = {m.file for m in matches}
    assert files == {"src/app.py", "notes.txt"}
    first = next(m for m in matches if m.file == "notes.txt")
    assert (first.line, first.column, first.content) == (1, 1, "foo foo")


@pytest.mark.asyncio
async def test_non_ascii_paths_come_back_unquoted(git_repo: Path):
    (git_repo / "café.md").write_text("foo in a café\n", encoding="utf-8")
    subprocess.run(["git", "add", "café.md"], cwd=git_repo, check=True, capture_output=True)

    matches = await Discovery(git_repo).run("café", False)

    assert [(m.file, m.line) for m in matches] == [("café.md", 1)]
