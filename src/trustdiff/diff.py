"""
diff.py — Four-way classification of two store snapshots

For snapshots OLD and NEW:
  identical  aliases in both, equal fingerprints      (entry from OLD)
  removed    aliases only in OLD                      (entry from OLD)
  added      aliases only in NEW                      (entry from NEW)
  changed    aliases in both, different fingerprints  (entry from NEW)

identical and changed partition the shared aliases exactly. Only requested
categories are computed; a requested category with no members is still
present, as an empty tuple. Every category is sorted by alias in code-point
order so that output is reproducible run to run.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Tuple, Union

from .snapshot import CertificateEntry, StoreSnapshot


class Category(str, Enum):
    IDENTICAL = "identical"
    REMOVED = "removed"
    ADDED = "added"
    CHANGED = "changed"
    ALL = "all"


# Output order of categories in a DiffResult.
CATEGORY_ORDER: Tuple[Category, ...] = (
    Category.IDENTICAL,
    Category.REMOVED,
    Category.ADDED,
    Category.CHANGED,
)
DEFAULT_CATEGORIES: Tuple[Category, ...] = (Category.REMOVED, Category.ADDED, Category.CHANGED)


def expand_categories(requested: Iterable[Union[str, Category]]) -> Tuple[Category, ...]:
    """Normalize requested category names to concrete categories in output order.

    Raises:
        ValueError: If a name is not a known category.
    """
    wanted = set()
    for item in requested:
        try:
            category = Category(item.strip().lower() if isinstance(item, str) else item)
        except ValueError:
            valid = ", ".join(c.value for c in Category)
            raise ValueError(f"Unknown category {item!r}; expected one of: {valid}") from None
        if category is Category.ALL:
            return CATEGORY_ORDER
        wanted.add(category)
    return tuple(c for c in CATEGORY_ORDER if c in wanted)


class DiffResult:
    """Ordered mapping of category name -> alias-sorted tuple of entries."""

    def __init__(self, categories: Dict[str, Tuple[CertificateEntry, ...]]):
        self._categories = dict(categories)

    def __getitem__(self, name: Union[str, Category]) -> Tuple[CertificateEntry, ...]:
        return self._categories[Category(name).value]

    def __contains__(self, name: object) -> bool:
        return getattr(name, "value", name) in self._categories

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def items(self):
        return self._categories.items()

    def aliases(self, name: Union[str, Category]) -> List[str]:
        return [entry.alias for entry in self[name]]

    @property
    def has_differences(self) -> bool:
        """True if any requested removed/added/changed category is non-empty."""
        return any(
            self._categories.get(c.value)
            for c in (Category.REMOVED, Category.ADDED, Category.CHANGED)
        )

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {
            name: [entry.to_dict() for entry in entries]
            for name, entries in self._categories.items()
        }

    def __repr__(self) -> str:
        counts = ", ".join(f"{name}={len(entries)}" for name, entries in self._categories.items())
        return f"DiffResult({counts})"


def _sorted(entries: Iterable[CertificateEntry]) -> Tuple[CertificateEntry, ...]:
    return tuple(sorted(entries, key=lambda e: e.alias))


def _identical(old: StoreSnapshot, new: StoreSnapshot) -> Tuple[CertificateEntry, ...]:
    return _sorted(
        old[a] for a in old.keys() & new.keys()
        if old[a].fingerprint == new[a].fingerprint
    )


def _removed(old: StoreSnapshot, new: StoreSnapshot) -> Tuple[CertificateEntry, ...]:
    return _sorted(old[a] for a in old.keys() - new.keys())


def _added(old: StoreSnapshot, new: StoreSnapshot) -> Tuple[CertificateEntry, ...]:
    return _sorted(new[a] for a in new.keys() - old.keys())


def _changed(old: StoreSnapshot, new: StoreSnapshot) -> Tuple[CertificateEntry, ...]:
    return _sorted(
        new[a] for a in old.keys() & new.keys()
        if old[a].fingerprint != new[a].fingerprint
    )


_CLASSIFIERS: Dict[Category, Callable[[StoreSnapshot, StoreSnapshot], Tuple[CertificateEntry, ...]]] = {
    Category.IDENTICAL: _identical,
    Category.REMOVED: _removed,
    Category.ADDED: _added,
    Category.CHANGED: _changed,
}


def diff(
    old: StoreSnapshot,
    new: StoreSnapshot,
    requested: Iterable[Union[str, Category]] = DEFAULT_CATEGORIES,
) -> DiffResult:
    """Classify every alias of ``old`` and ``new`` into the requested categories.

    Args:
        old: Snapshot of the baseline store.
        new: Snapshot of the store being compared against the baseline.
        requested: Category names; ``"all"`` selects all four.

    Returns:
        DiffResult: Requested categories in canonical order.

    Raises:
        ValueError: If ``requested`` names an unknown category.
    """
    return DiffResult({
        category.value: _CLASSIFIERS[category](old, new)
        for category in expand_categories(requested)
    })
