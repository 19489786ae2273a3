"""
presenter.py — Rendering of diff results, merge reports and snapshot issues

Renderers return text; printing is left to the caller. Output depends only
on the input values, so the same result always renders the same way.

Extra fields are opt-in per invocation and never affect classification:
  cn -> commonName
  nb -> notBefore
  na -> notAfter
"""

from __future__ import annotations
import json
from datetime import datetime, timezone
from enum import Enum
from typing import AbstractSet, Any, Dict, Iterable, List, Sequence

from .diff import DiffResult
from .merge import MergeReport
from .snapshot import CertificateEntry, SnapshotIssue

EMPTY_MARKER = "<empty>"


class ExtraField(str, Enum):
    COMMON_NAME = "cn"
    NOT_BEFORE = "nb"
    NOT_AFTER = "na"


# (field, console label, JSON key) in output order.
_FIELD_LAYOUT = (
    (ExtraField.COMMON_NAME, "cn", "commonName"),
    (ExtraField.NOT_BEFORE, "nb", "notBefore"),
    (ExtraField.NOT_AFTER, "na", "notAfter"),
)


class Format(str, Enum):
    CONSOLE = "console"
    JSON = "json"


def parse_extra_fields(names: Iterable[str]) -> frozenset:
    """Turn ``["cn", "nb"]`` style names into a set of ExtraField.

    Raises:
        ValueError: On an unknown field name.
    """
    fields = set()
    for name in names:
        name = name.strip().lower()
        if not name:
            continue
        try:
            fields.add(ExtraField(name))
        except ValueError:
            valid = ", ".join(f.value for f in ExtraField)
            raise ValueError(f"Unknown extra field {name!r}; expected one of: {valid}") from None
    return frozenset(fields)


def format_instant(value: datetime) -> str:
    """ISO-8601 UTC with a ``Z`` suffix, e.g. ``2030-01-01T00:00:00Z``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _field_value(entry: CertificateEntry, field: ExtraField) -> str:
    if field is ExtraField.COMMON_NAME:
        return entry.common_name
    if field is ExtraField.NOT_BEFORE:
        return format_instant(entry.not_before)
    return format_instant(entry.not_after)


def entry_row(entry: CertificateEntry, extra: AbstractSet[ExtraField]) -> Dict[str, Any]:
    row: Dict[str, Any] = {"alias": entry.alias}
    for field, _, key in _FIELD_LAYOUT:
        if field in extra:
            row[key] = _field_value(entry, field)
    return row


def entry_line(entry: CertificateEntry, extra: AbstractSet[ExtraField]) -> str:
    parts = [f"alias={entry.alias}"]
    for field, label, _ in _FIELD_LAYOUT:
        if field in extra:
            parts.append(f"{label}={_field_value(entry, field)}")
    return "  " + " ".join(parts)


def render_console(result: DiffResult, extra: AbstractSet[ExtraField] = frozenset()) -> str:
    lines: List[str] = []
    for name, entries in result.items():
        lines.append(f"=== {name} ===")
        if not entries:
            lines.append(f"  {EMPTY_MARKER}")
        for entry in entries:
            lines.append(entry_line(entry, extra))
    return "\n".join(lines)


def render_json(result: DiffResult, extra: AbstractSet[ExtraField] = frozenset()) -> str:
    payload = {
        name: [entry_row(entry, extra) for entry in entries]
        for name, entries in result.items()
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_diff(
    result: DiffResult,
    fmt: Format | str = Format.CONSOLE,
    extra: AbstractSet[ExtraField] = frozenset(),
) -> str:
    if Format(fmt) is Format.JSON:
        return render_json(result, extra)
    return render_console(result, extra)


def render_issues(source: str, issues: Sequence[SnapshotIssue]) -> str:
    """One line per alias left out of a snapshot; empty string if none."""
    lines = [f"WARNING: {len(issues)} entries skipped in {source}:"] if issues else []
    for issue in issues:
        detail = f" ({issue.detail})" if issue.detail else ""
        lines.append(f"  alias={issue.alias} {issue.kind}{detail}")
    return "\n".join(lines)


def render_merge_report(report: MergeReport, fmt: Format | str = Format.CONSOLE) -> str:
    if Format(fmt) is Format.JSON:
        return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    lines = [f"  {outcome.value:<24} {alias}" for alias, outcome in report]
    if not lines:
        lines.append(f"  {EMPTY_MARKER}")
    lines.append(
        f"Imported {len(report.imported)}, skipped {len(report.skipped)}, "
        f"not found {len(report.not_found)}"
        + (f", unreadable {len(report.unreadable)}" if report.unreadable else "")
        + (f", rejected {len(report.rejected)}" if report.rejected else "")
    )
    return "\n".join(lines)
