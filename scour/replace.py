"""
SCOUR Replacement Engine

Rewrites every file touched by the selected matches. Each file is read,
edited and written on its own; a file that cannot be read or written is
reported and skipped, and the rest of the batch carries on. There is no
rollback: files already written stay written.
"""

from __future__ import annotations

import re
from collections import defaultdict

from loguru import logger

from scour.files import FileStore, FileStoreError
from scour.state import ReplacementReport, SearchMatch


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a regex search pattern. Raises re.error for an invalid one."""
    return re.compile(pattern)


_DOLLAR = re.compile(r"\$(?:\$|&|`|'|\{(\d+)\}|<([^>]*)>|(\d\d?))")


def expand_replacement(template: str, match: re.Match[str]) -> str:
    """
    Expand `$` references in a regex replacement the way editors do:

        $$        a literal $
        $&        the whole match
        $` / $'   the text before / after the match
        $1 $12    a numbered group (two digits only if that group exists)
        ${1}      a numbered group, braced
        $<name>   a named group

    A reference to a group the pattern does not have is left as written,
    and so is everything else, backslashes included. Groups that did not
    participate in the match expand to "".
    """
    groups = match.re.groups
    names = match.re.groupindex

    def ref(m: re.Match[str]) -> str:
        token = m.group(0)
        braced, name, digits = m.group(1), m.group(2), m.group(3)
        if token == "$$":
            return "$"
        if token == "$&":
            return match.group(0)
        if token == "$`":
            return match.string[:match.start()]
        if token == "$'":
            return match.string[match.end():]
        if braced is not None:
            index = int(braced)
            return (match.group(index) or "") if 0 < index <= groups else token
        if name is not None:
            return (match.group(name) or "") if name in names else token
        if len(digits) == 2 and 0 < int(digits) <= groups:
            return match.group(int(digits)) or ""
        index = int(digits[0])
        if 0 < index <= groups:
            return (match.group(index) or "") + digits[1:]
        return token

    return _DOLLAR.sub(ref, template)


class ReplacementEngine:
    def __init__(self, files: FileStore):
        self.files = files

    async def apply(
        self,
        selected: list[SearchMatch],
        pattern: str,
        replacement: str,
        is_regex: bool = False,
    ) -> ReplacementReport:
        """
        Replace `pattern` on every line referenced by `selected`.

        Replacement is whole-line: every occurrence on a referenced line is
        replaced, and `occurrences` counts lines processed, not substrings.
        Lines no match points at are left untouched.

        Raises:
            ValueError: empty pattern.
            re.error: `is_regex` and the pattern does not compile.
        """
        if not pattern:
            raise ValueError("pattern must not be empty")
        regex = compile_pattern(pattern) if is_regex else None

        by_file: dict[str, list[SearchMatch]] = defaultdict(list)
        for match in selected:
            by_file[match.file].append(match)

        report = ReplacementReport()

        for path, matches in by_file.items():
            try:
                content = await self.files.read(path)
            except FileStoreError as e:
                report.errors.append(str(e))
                continue

            lines = content.split("\n")
            # Bottom-up, right-to-left: earlier positions stay valid while editing.
            ordered = sorted(matches, key=lambda m: (m.line, m.column), reverse=True)

            replaced = self._replace_lines(lines, ordered, pattern, replacement, regex)

            # Lines count as processed even if the write below fails.
            report.occurrences += replaced

            try:
                await self.files.write(path, "\n".join(lines))
            except FileStoreError as e:
                report.errors.append(str(e))
                continue

            report.files_modified += 1
            logger.debug(f"[REPLACE] {path}: {replaced} line(s) rewritten")

        if report.errors:
            logger.debug(f"[REPLACE] errors: {', '.join(report.errors)}")
        return report

    @staticmethod
    def _replace_lines(
        lines: list[str],
        ordered: list[SearchMatch],
        pattern: str,
        replacement: str,
        regex: re.Pattern[str] | None,
    ) -> int:
        count = 0
        for match in ordered:
            idx = match.line - 1
            if not 0 <= idx < len(lines):
                continue
            if regex is not None:
                lines[idx] = regex.sub(lambda m: expand_replacement(replacement, m), lines[idx])
            else:
                lines[idx] = replacement.join(lines[idx].split(pattern))
            count += 1
        return count
