#!/usr/bin/env python3
"""
cli.py — Unified CLI for trustdiff

Commands:
  compare   Compare two certificate stores: identical / removed / added / changed
  import    Copy a list of aliases from one store into another, never overwriting

Stores are PKCS#12 truststores (e.g. a Java ``cacerts`` file) or directories
holding one PEM/DER certificate per alias.
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .alias_list import read_alias_list
from .diff import diff, expand_categories
from .errors import AliasListError, EncodingError, StorePersistError, TrustDiffError
from .merge import merge
from .presenter import Format, parse_extra_fields, render_diff, render_issues, render_merge_report
from .snapshot import build_snapshot
from .stores import CertificateStore, open_store

DEFAULT_PASSWORD = "changeit"
DEFAULT_TABLES = "removed,added,changed"
DEFAULT_EXTRA = "nb"
DEFAULT_FORMAT = Format.CONSOLE.value

logger = logging.getLogger(__name__)

_DEFAULT_FIX = "check the store path, format and password and retry the command"
_FIXES = {
    AliasListError: "check that the alias file exists and is UTF-8 text with one alias per line",
    StorePersistError: "check that the target store location is writable and has free space",
    EncodingError: "re-export the certificate as PEM or DER, or remove it from the store",
}


def _fail_with_error(err: TrustDiffError) -> None:
    """Print a structured error message from a ``TrustDiffError`` and exit.

    Args:
        err: Structured store/input error.

    Returns:
        None: This function terminates the process.
    """
    context = f" Context: {err.context}." if err.context else ""
    fix = next((text for kind, text in _FIXES.items() if isinstance(err, kind)), _DEFAULT_FIX)
    print(
        f"ERROR: {err.code}. {err.message}{context} "
        f"Fix: {fix}. "
        f"(See: {err.doc_url})"
    )
    sys.exit(1)


def _cli_error(what: str, why: str, fix: str, see: str) -> None:
    """Print a teaching-style CLI error and exit.

    Args:
        what: What failed.
        why: Why it failed.
        fix: Recommended remediation.
        see: Command reference.

    Returns:
        None: This function terminates the process.
    """
    print(f"ERROR: {what}. {why}. Fix: {fix}. (See: {see})")
    sys.exit(1)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _open(path: str, password: Optional[str]) -> CertificateStore:
    try:
        return open_store(Path(path), password)
    except TrustDiffError as err:
        _fail_with_error(err)


def cmd_compare(args: argparse.Namespace) -> None:
    """Handle ``trustdiff compare``.

    Args:
        args: Parsed CLI arguments with both store paths and display options.
    """
    try:
        categories = expand_categories(args.tables.split(","))
    except ValueError as exc:
        _cli_error(
            "Invalid --tables value",
            str(exc),
            "pass a comma-separated subset of identical,removed,added,changed or all",
            "trustdiff compare --help",
        )
    try:
        extra = parse_extra_fields(args.extra.split(","))
    except ValueError as exc:
        _cli_error(
            "Invalid --extra value",
            str(exc),
            "pass a comma-separated subset of cn,nb,na",
            "trustdiff compare --help",
        )

    old_store = _open(args.old, args.old_password or args.password)
    new_store = _open(args.new, args.new_password or args.password)

    snapshots = []
    for store in (old_store, new_store):
        try:
            snapshot = build_snapshot(store)
        except TrustDiffError as err:
            _fail_with_error(err)
        if snapshot.issues:
            print(render_issues(snapshot.source, snapshot.issues), file=sys.stderr)
        snapshots.append(snapshot)

    result = diff(snapshots[0], snapshots[1], categories)
    print(render_diff(result, args.format, extra))


def cmd_import(args: argparse.Namespace) -> None:
    """Handle ``trustdiff import``.

    Args:
        args: Parsed CLI arguments with source/target stores and the alias file.
    """
    try:
        aliases = read_alias_list(args.input_file)
    except TrustDiffError as err:
        _fail_with_error(err)

    source = _open(args.old, args.old_password or args.password)
    destination = _open(args.new, args.new_password or args.password)

    report = merge(source, destination, aliases)
    print(render_merge_report(report, args.format))

    if args.dry_run:
        print("Dry run: target store left unchanged.", file=sys.stderr)
        return
    if not report.changed:
        print(f"Nothing imported; {destination.label} left unchanged.", file=sys.stderr)
        return
    try:
        destination.save()
    except TrustDiffError as err:
        _fail_with_error(err)
    print(f"Saved store: {destination.label}", file=sys.stderr)


def _add_store_arguments(p: argparse.ArgumentParser, old_help: str, new_help: str) -> None:
    p.add_argument("-o", "--old", required=True, help=old_help)
    p.add_argument("-n", "--new", required=True, help=new_help)
    p.add_argument(
        "-p", "--password", nargs="?", const="", default=DEFAULT_PASSWORD,
        help=f"Password for both stores (default: {DEFAULT_PASSWORD}; bare -p means none)",
    )
    p.add_argument("--old-password", help="Password for the --old store only")
    p.add_argument("--new-password", help="Password for the --new store only")
    p.add_argument(
        "-f", "--format", default=DEFAULT_FORMAT, choices=[f.value for f in Format],
        help=f"Output format (default: {DEFAULT_FORMAT})",
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="trustdiff",
        description="trustdiff: compare certificate stores and import aliases between them",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-entry progress to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_cmp = sub.add_parser("compare", help="Compare two stores")
    _add_store_arguments(p_cmp, "Path to the OLD store", "Path to the NEW store")
    p_cmp.add_argument(
        "-t", "--tables", default=DEFAULT_TABLES,
        help="Tables to show: identical,removed,added,changed,all (comma-separated)",
    )
    p_cmp.add_argument(
        "-x", "--extra", default=DEFAULT_EXTRA,
        help="Extra certificate fields: cn,nb,na (comma-separated)",
    )

    p_imp = sub.add_parser("import", help="Import aliases from OLD store into NEW store")
    _add_store_arguments(p_imp, "Source store", "Target store (updated in place)")
    p_imp.add_argument("-i", "--input-file", required=True, help="Text file: one alias per line")
    p_imp.add_argument("--dry-run", action="store_true", help="Report outcomes without saving the target")

    args = parser.parse_args()
    _configure_logging(args.verbose)

    if args.command == "compare": cmd_compare(args)
    elif args.command == "import": cmd_import(args)


if __name__ == "__main__":
    main()
