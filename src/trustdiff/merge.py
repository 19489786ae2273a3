"""
merge.py — Additive, conflict-aware import between stores

merge(source, destination, aliases) copies the certificate of each requested
alias from source to destination under the same alias. It never overwrites:
an alias that already exists in the destination is skipped. Aliases missing
from the source are reported, not raised. Only the certificate is copied;
chains and private keys stay behind.

The destination is mutated in place and never saved here. Persisting it is
the caller's decision (see ``CertificateStore.save``).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

from .errors import EncodingError
from .stores import CertificateStore

logger = logging.getLogger(__name__)


class MergeOutcome(str, Enum):
    IMPORTED = "imported"
    NOT_FOUND_IN_SOURCE = "not_found_in_source"
    SKIPPED_ALREADY_EXISTS = "skipped_already_exists"
    # Source entry exists but its certificate could not be read.
    UNREADABLE_IN_SOURCE = "unreadable_in_source"
    # Destination refused the alias, e.g. not usable as a file name.
    REJECTED_BY_DESTINATION = "rejected_by_destination"


@dataclass
class MergeReport:
    """Per-alias outcomes of one merge, in processing order."""
    results: List[Tuple[str, MergeOutcome]] = field(default_factory=list)

    def record(self, alias: str, outcome: MergeOutcome) -> None:
        self.results.append((alias, outcome))

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def outcome(self, alias: str) -> MergeOutcome:
        for name, outcome in self.results:
            if name == alias:
                return outcome
        raise KeyError(alias)

    def aliases_with(self, outcome: MergeOutcome) -> List[str]:
        return [alias for alias, o in self.results if o is outcome]

    @property
    def imported(self) -> List[str]:
        return self.aliases_with(MergeOutcome.IMPORTED)

    @property
    def not_found(self) -> List[str]:
        return self.aliases_with(MergeOutcome.NOT_FOUND_IN_SOURCE)

    @property
    def skipped(self) -> List[str]:
        return self.aliases_with(MergeOutcome.SKIPPED_ALREADY_EXISTS)

    @property
    def unreadable(self) -> List[str]:
        return self.aliases_with(MergeOutcome.UNREADABLE_IN_SOURCE)

    @property
    def rejected(self) -> List[str]:
        return self.aliases_with(MergeOutcome.REJECTED_BY_DESTINATION)

    @property
    def changed(self) -> bool:
        """True if the destination was modified."""
        return bool(self.imported)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [{"alias": a, "outcome": o.value} for a, o in self.results],
            "imported_count": len(self.imported),
            "not_found_count": len(self.not_found),
            "skipped_count": len(self.skipped),
            "unreadable_count": len(self.unreadable),
            "rejected_count": len(self.rejected),
        }


def merge(
    source: CertificateStore,
    destination: CertificateStore,
    aliases: Iterable[str],
) -> MergeReport:
    """Import the requested aliases from ``source`` into ``destination``.

    Args:
        source: Store to copy certificates from.
        destination: Store to copy certificates into. Mutated in place.
        aliases: Requested aliases, processed in the given order. A repeated
            alias is processed once, at its first position.

    Returns:
        MergeReport: One outcome per distinct requested alias.
    """
    report = MergeReport()
    for alias in dict.fromkeys(aliases):
        if not source.contains_alias(alias):
            logger.warning("Alias %r not found in %s", alias, source.label)
            report.record(alias, MergeOutcome.NOT_FOUND_IN_SOURCE)
        elif destination.contains_alias(alias):
            logger.warning("Alias %r already exists in %s, skipping", alias, destination.label)
            report.record(alias, MergeOutcome.SKIPPED_ALREADY_EXISTS)
        else:
            try:
                cert = source.get_certificate(alias)
            except EncodingError as err:
                logger.warning("Alias %r in %s is unreadable: %s", alias, source.label, err)
                report.record(alias, MergeOutcome.UNREADABLE_IN_SOURCE)
                continue
            if cert is None:
                logger.warning("Alias %r not found in %s", alias, source.label)
                report.record(alias, MergeOutcome.NOT_FOUND_IN_SOURCE)
                continue
            try:
                destination.set_certificate(alias, cert)
            except ValueError as exc:
                logger.warning("Alias %r rejected by %s: %s", alias, destination.label, exc)
                report.record(alias, MergeOutcome.REJECTED_BY_DESTINATION)
                continue
            logger.info("Imported alias %r into %s", alias, destination.label)
            report.record(alias, MergeOutcome.IMPORTED)
    return report
