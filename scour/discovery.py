"""
SCOUR Discovery — The Scout

Finds every occurrence of a pattern across the git-tracked files of a
repository by shelling out to `git grep`. Only tracked, non-binary files
are searched, so .gitignore is respected for free.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from loguru import logger

from scour.parsing import parse_match_line
from scour.state import SearchMatch

MAX_RESULTS = 200


class DiscoveryError(Exception):
    """Raised when the search backend could not be invoked at all."""
    pass


@dataclass
class BackendResult:
    exit_code: int
    stdout: str
    stderr: str = ""


Runner = Callable[[list[str], Path], Awaitable[BackendResult]]


async def run_backend(cmd: list[str], cwd: Path) -> BackendResult:
    """Spawn the backend process and collect its output."""
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return BackendResult(
        exit_code=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="surrogateescape"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def build_grep_command(pattern: str, is_regex: bool) -> list[str]:
    # Unquoted paths, so non-ASCII names come back readable.
    cmd = ["git", "-c", "core.quotePath=false", "grep", "-n", "--column", "-I"]
    cmd.append("-E" if is_regex else "-F")
    cmd += ["--", pattern]
    return cmd


class Discovery:
    """Runs the content search and turns its output into an ordered, capped match list."""

    def __init__(
        self,
        repo_path: Path,
        max_results: int = MAX_RESULTS,
        runner: Runner | None = None,
    ):
        self.repo_path = repo_path
        self.max_results = max_results
        self._runner = runner or run_backend

    async def run(self, pattern: str, is_regex: bool = False) -> list[SearchMatch]:
        cmd = build_grep_command(pattern, is_regex)
        logger.debug(f"[DISCOVERY] {' '.join(cmd)} (cwd={self.repo_path})")

        try:
            result = await self._runner(cmd, self.repo_path)
        except OSError as e:
            raise DiscoveryError(f"could not run git grep: {e}") from e

        if result.exit_code != 0:
            # git grep exits 1 when nothing matched; anything else is a backend
            # complaint (not a repo, bad regex). Both mean "no matches" here.
            if result.exit_code > 1 and result.stderr.strip():
                logger.warning(f"[DISCOVERY] git grep exited {result.exit_code}: {result.stderr.strip()}")
            return []

        return self.collect(result.stdout.split("\n"))

    def collect(self, lines: list[str]) -> list[SearchMatch]:
        """Parse raw backend lines, keeping the first `max_results` matches in order."""
        matches: list[SearchMatch] = []
        for line in lines:
            if not line.strip():
                continue
            match = parse_match_line(line)
            if match is None:
                continue
            matches.append(match)
            if len(matches) >= self.max_results:
                break

        logger.debug(f"[DISCOVERY] {len(matches)} matches kept (cap {self.max_results})")
        return matches
