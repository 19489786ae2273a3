"""trustdiff public API.

Compare two X.509 certificate stores and import selected aliases from one
into another without overwriting existing entries.

Example:
    from trustdiff import open_store, build_snapshot, diff

    old = build_snapshot(open_store("cacerts.old", "changeit"))
    new = build_snapshot(open_store("cacerts.new", "changeit"))
    result = diff(old, new, ["all"])
    print(result.aliases("changed"))
"""

from .errors import (
    TrustDiffError,
    StoreAccessError,
    StorePersistError,
    EncodingError,
    AliasListError,
)
from .fingerprint import fingerprint, certificate_der, certificate_fingerprint
from .snapshot import CertificateEntry, SnapshotIssue, StoreSnapshot, build_snapshot
from .diff import Category, DiffResult, diff, expand_categories
from .merge import MergeOutcome, MergeReport, merge
from .stores import CertificateStore, MemoryStore, PemDirectoryStore, Pkcs12Store, open_store
from .alias_list import parse_alias_lines, read_alias_list
from .presenter import ExtraField, Format, render_diff, render_merge_report

__version__ = "1.0.0"
__all__ = [
    "TrustDiffError",
    "StoreAccessError",
    "StorePersistError",
    "EncodingError",
    "AliasListError",
    "fingerprint",
    "certificate_der",
    "certificate_fingerprint",
    "CertificateEntry",
    "SnapshotIssue",
    "StoreSnapshot",
    "build_snapshot",
    "Category",
    "DiffResult",
    "diff",
    "expand_categories",
    "MergeOutcome",
    "MergeReport",
    "merge",
    "CertificateStore",
    "MemoryStore",
    "PemDirectoryStore",
    "Pkcs12Store",
    "open_store",
    "parse_alias_lines",
    "read_alias_list",
    "ExtraField",
    "Format",
    "render_diff",
    "render_merge_report",
]
