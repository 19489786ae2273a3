"""
alias_list.py — Alias list input for imports

Format: one alias per line. Surrounding whitespace is trimmed, blank lines
are dropped, and repeated aliases collapse to one (first occurrence wins
the position). There is no comment or delimiter syntax.
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List

from .errors import AliasListError


def parse_alias_lines(lines: Iterable[str]) -> List[str]:
    """Return the distinct non-blank trimmed aliases in first-seen order."""
    return list(dict.fromkeys(s for s in (line.strip() for line in lines) if s))


def read_alias_list(path: str | Path) -> List[str]:
    """Read an alias list file.

    Raises:
        AliasListError: If the file cannot be read as UTF-8 text.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise AliasListError(f"{path}: {exc}") from exc
    return parse_alias_lines(text.splitlines())
