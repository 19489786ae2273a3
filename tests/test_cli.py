"""
test_cli.py — trustdiff command line

Argument dispatch is checked with mocked command handlers; the compare and
import commands are then run in-process against real PKCS#12 and PEM
directory stores written to a temporary directory.
"""

import json
import sys
import unittest.mock as mock

import pytest

from cert_factory import make_certificate, write_pem, write_pkcs12
from trustdiff.cli import _cli_error, _fail_with_error, main
from trustdiff.errors import AliasListError, StoreAccessError, StorePersistError, TrustDiffError
from trustdiff.stores import Pkcs12Store


def run_cli(*argv):
    with mock.patch.object(sys, "argv", ["trustdiff", *argv]):
        main()


def run_cli_exit(*argv):
    with pytest.raises(SystemExit) as e:
        run_cli(*argv)
    return e.value.code


@pytest.fixture
def stores(tmp_path):
    kept = make_certificate("Kept Root")
    old = write_pkcs12(tmp_path / "old.p12", {
        "kept": kept,
        "replaced": make_certificate("Replaced Root"),
        "gone": make_certificate("Gone Root"),
    })
    new = write_pkcs12(tmp_path / "new.p12", {
        "kept": kept,
        "replaced": make_certificate("Replaced Root"),
        "fresh": make_certificate("Fresh Root"),
    })
    return old, new


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------

def test_fail_with_error(capsys):
    err = TrustDiffError(code="TEST_ERR", message="Test message.", context="test context")
    with pytest.raises(SystemExit) as e:
        _fail_with_error(err)
    assert e.value.code == 1
    captured = capsys.readouterr()
    assert "ERROR: TEST_ERR. Test message. Context: test context." in captured.out
    assert "(See: https://trustdiff.readthedocs.io/errors/TEST_ERR)" in captured.out
    assert "Fix: check the store path, format and password" in captured.out

@pytest.mark.parametrize("err, fix", [
    (AliasListError("aliases.txt: not found"), "Fix: check that the alias file exists"),
    (StorePersistError("new.p12: read-only"), "Fix: check that the target store location is writable"),
    (StoreAccessError("new.p12: bad password"), "Fix: check the store path, format and password"),
])
def test_fail_with_error_fix_matches_error(err, fix, capsys):
    with pytest.raises(SystemExit):
        _fail_with_error(err)
    assert fix in capsys.readouterr().out

def test_cli_error(capsys):
    with pytest.raises(SystemExit) as e:
        _cli_error("What", "Why", "Fix", "See")
    assert e.value.code == 1
    assert "ERROR: What. Why. Fix: Fix. (See: See)" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Argument parsing and dispatch
# ---------------------------------------------------------------------------

def test_cli_main_help(capsys):
    assert run_cli_exit("--help") == 0
    assert "compare certificate stores" in capsys.readouterr().out

def test_cli_requires_command():
    assert run_cli_exit() == 2

def test_cli_compare_defaults():
    with mock.patch("trustdiff.cli.cmd_compare") as mock_compare:
        run_cli("compare", "-o", "old.p12", "-n", "new.p12")
    args = mock_compare.call_args[0][0]
    assert args.old == "old.p12"
    assert args.new == "new.p12"
    assert args.password == "changeit"
    assert args.tables == "removed,added,changed"
    assert args.extra == "nb"
    assert args.format == "console"

def test_cli_bare_password_flag_means_no_password():
    with mock.patch("trustdiff.cli.cmd_compare") as mock_compare:
        run_cli("compare", "-o", "a", "-n", "b", "-p", "-t", "all")
    args = mock_compare.call_args[0][0]
    assert args.password == ""
    assert args.tables == "all"

def test_cli_import_call():
    with mock.patch("trustdiff.cli.cmd_import") as mock_import:
        run_cli("-v", "import", "-o", "src.p12", "-n", "dst.p12", "-i", "aliases.txt", "--dry-run")
    args = mock_import.call_args[0][0]
    assert args.input_file == "aliases.txt"
    assert args.dry_run is True
    assert args.verbose is True

def test_cli_rejects_unknown_format():
    assert run_cli_exit("compare", "-o", "a", "-n", "b", "-f", "xml") == 2


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------

def test_compare_console(stores, capsys):
    old, new = stores
    run_cli("compare", "-o", str(old), "-n", str(new), "-t", "all", "-x", "cn")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "=== identical ===",
        "  alias=kept cn=Kept Root",
        "=== removed ===",
        "  alias=gone cn=Gone Root",
        "=== added ===",
        "  alias=fresh cn=Fresh Root",
        "=== changed ===",
        "  alias=replaced cn=Replaced Root",
    ]

def test_compare_json_default_tables(stores, capsys):
    old, new = stores
    run_cli("compare", "-o", str(old), "-n", str(new), "-f", "json")
    payload = json.loads(capsys.readouterr().out)
    assert list(payload) == ["removed", "added", "changed"]
    assert payload["removed"] == [{"alias": "gone", "notBefore": "2024-01-01T00:00:00Z"}]

def test_compare_identical_stores_shows_empty_markers(stores, capsys):
    old, _ = stores
    run_cli("compare", "-o", str(old), "-n", str(old), "-x", "")
    assert capsys.readouterr().out.splitlines() == [
        "=== removed ===", "  <empty>",
        "=== added ===", "  <empty>",
        "=== changed ===", "  <empty>",
    ]

def test_compare_pem_directory_against_pkcs12(tmp_path, stores, capsys):
    old, _ = stores
    pem_dir = tmp_path / "pem"
    pem_dir.mkdir()
    store = Pkcs12Store(old, "changeit")
    for alias in ("kept", "gone"):
        write_pem(pem_dir / f"{alias}.pem", store.get_certificate(alias))
    run_cli("compare", "-o", str(old), "-n", str(pem_dir), "-t", "identical,removed", "-x", "")
    assert capsys.readouterr().out.splitlines() == [
        "=== identical ===", "  alias=gone", "  alias=kept",
        "=== removed ===", "  alias=replaced",
    ]

def test_compare_reports_skipped_entries_on_stderr(tmp_path, capsys):
    pem_dir = tmp_path / "pem"
    pem_dir.mkdir()
    (pem_dir / "broken.pem").write_text("-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n")
    run_cli("compare", "-o", str(pem_dir), "-n", str(pem_dir), "-f", "json")
    captured = capsys.readouterr()
    assert json.loads(captured.out) == {"removed": [], "added": [], "changed": []}
    assert "alias=broken encoding_error" in captured.err

def test_compare_separate_passwords(tmp_path, capsys):
    old = write_pkcs12(tmp_path / "old.p12", {"a": make_certificate()}, password="oldpw")
    new = write_pkcs12(tmp_path / "new.p12", {"b": make_certificate()}, password="newpw")
    run_cli("compare", "-o", str(old), "-n", str(new), "--old-password", "oldpw",
            "--new-password", "newpw", "-x", "")
    out = capsys.readouterr().out.splitlines()
    assert out[:4] == ["=== removed ===", "  alias=a", "=== added ===", "  alias=b"]

def test_compare_wrong_password(stores, capsys):
    old, new = stores
    assert run_cli_exit("compare", "-o", str(old), "-n", str(new), "-p", "wrong") == 1
    assert f"ERROR: {StoreAccessError().code}" in capsys.readouterr().out

def test_compare_invalid_tables(stores, capsys):
    old, new = stores
    assert run_cli_exit("compare", "-o", str(old), "-n", str(new), "-t", "removed,moved") == 1
    assert "Invalid --tables value" in capsys.readouterr().out

def test_compare_invalid_extra(stores, capsys):
    old, new = stores
    assert run_cli_exit("compare", "-o", str(old), "-n", str(new), "-x", "serial") == 1
    assert "Invalid --extra value" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------

def test_import_saves_target(tmp_path, stores, capsys):
    old, new = stores
    aliases = tmp_path / "aliases.txt"
    aliases.write_text("gone\nkept\nmissing\n\ngone\n")

    run_cli("import", "-o", str(old), "-n", str(new), "-i", str(aliases))

    captured = capsys.readouterr()
    assert "Imported 1, skipped 1, not found 1" in captured.out
    assert f"Saved store: {new}" in captured.err
    assert sorted(Pkcs12Store(new, "changeit").aliases()) == ["fresh", "gone", "kept", "replaced"]

    # Second run: nothing left to import, target not rewritten.
    before = new.read_bytes()
    run_cli("import", "-o", str(old), "-n", str(new), "-i", str(aliases))
    captured = capsys.readouterr()
    assert "Imported 0, skipped 2, not found 1" in captured.out
    assert "Nothing imported" in captured.err
    assert new.read_bytes() == before

def test_import_dry_run(tmp_path, stores, capsys):
    old, new = stores
    aliases = tmp_path / "aliases.txt"
    aliases.write_text("gone\n")
    before = new.read_bytes()

    run_cli("import", "-o", str(old), "-n", str(new), "-i", str(aliases), "--dry-run")

    captured = capsys.readouterr()
    assert "Dry run" in captured.err
    assert "Dry run" not in captured.out
    assert new.read_bytes() == before

def test_import_json_report(tmp_path, stores, capsys):
    old, new = stores
    aliases = tmp_path / "aliases.txt"
    aliases.write_text("gone\n")
    run_cli("import", "-o", str(old), "-n", str(new), "-i", str(aliases), "-f", "json")
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["results"] == [{"alias": "gone", "outcome": "imported"}]
    assert f"Saved store: {new}" in captured.err

def test_import_into_pem_directory(tmp_path, stores, capsys):
    old, _ = stores
    pem_dir = tmp_path / "pem"
    pem_dir.mkdir()
    aliases = tmp_path / "aliases.txt"
    aliases.write_text("kept\n")
    run_cli("import", "-o", str(old), "-n", str(pem_dir), "-i", str(aliases))
    assert (pem_dir / "kept.pem").exists()

def test_import_missing_alias_file(tmp_path, stores, capsys):
    old, new = stores
    assert run_cli_exit("import", "-o", str(old), "-n", str(new), "-i", str(tmp_path / "none.txt")) == 1
    out = capsys.readouterr().out
    assert "TRUSTDIFF_E200" in out
    assert "Fix: check that the alias file exists" in out

def test_import_missing_target(tmp_path, stores, capsys):
    old, _ = stores
    aliases = tmp_path / "aliases.txt"
    aliases.write_text("gone\n")
    assert run_cli_exit("import", "-o", str(old), "-n", str(tmp_path / "nope.p12"), "-i", str(aliases)) == 1
    assert "TRUSTDIFF_E001" in capsys.readouterr().out
