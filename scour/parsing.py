"""
SCOUR Match Parser

Turns one line of `git grep -n --column` output into a SearchMatch.
"""

from __future__ import annotations

import re

from scour.state import SearchMatch

# <file>:<line>:<column>:<rest>, where <rest> may itself contain colons
MATCH_LINE = re.compile(r"^([^:]+):(\d+):(\d+):(.*)$")


def parse_match_line(line: str) -> SearchMatch | None:
    """Parse a backend output line, or return None if it is not a match line."""
    m = MATCH_LINE.match(line)
    if not m:
        return None

    line_no, column = int(m.group(2)), int(m.group(3))
    if line_no < 1 or column < 1:
        return None

    return SearchMatch(
        file=m.group(1),
        line=line_no,
        column=column,
        content=m.group(4),
    )
