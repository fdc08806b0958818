"""Compare two symbol tables and report breaking changes and likely renames."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

from .symbols import SymbolTable

__all__ = [
    "ChangeKind",
    "Change",
    "Rename",
    "DiffResult",
    "compare_tables",
    "sort_diff_result",
    "levenshtein_similarity",
]

DEFAULT_MAX_RESULTS = 50
MAX_RESULTS_LIMIT = 200
_RENAME_SUFFIXES = ("V2", "New", "Legacy", "V1", "2")


class ChangeKind(str, Enum):
    REMOVED = "removed"
    ADDED = "added"
    SIGNATURE_CHANGED = "signature_changed"
    TYPE_CHANGED = "type_changed"
    DEPRECATED_ADDED = "deprecated_added"
    DEPRECATED_REMOVED = "deprecated_removed"


@dataclass
class Change:
    """One difference between two versions of a symbol."""

    kind: ChangeKind
    symbol: str
    details: str
    migration_hint: str = ""


@dataclass
class Rename:
    """A removed symbol that may have been renamed to an added one."""

    removed: str
    added: str
    confidence: str


@dataclass
class DiffResult:
    """The outcome of comparing two symbol tables."""

    module: str
    requested_from: str = ""
    resolved_from: str = ""
    requested_to: str = ""
    resolved_to: str = ""
    from_verified: bool = False
    to_verified: bool = False
    breaking_changes: list[Change] = field(default_factory=list)
    non_breaking: list[Change] = field(default_factory=list)
    possible_renames: list[Rename] = field(default_factory=list)
    summary: str = ""


def _parent(qualified: str) -> str:
    head, sep, _ = qualified.rpartition(".")
    return head if sep else ""


def _short_name(qualified: str) -> str:
    return qualified.rsplit(".", 1)[-1]


def _truncate_sig(sig: str) -> str:
    return sig[:57] + "..." if len(sig) > 60 else sig


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _levenshtein_distance(a: str, b: str) -> int:
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def levenshtein_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] from edit distance relative to the longer string."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - _levenshtein_distance(a, b) / max(len(a), len(b))


def _has_rename_suffix(removed: str, added: str) -> bool:
    return any(added == removed + suffix for suffix in _RENAME_SUFFIXES)


def _find_renames(breaking: list[Change], non_breaking: list[Change]) -> list[Rename]:
    removed_by_parent: dict[str, dict[str, None]] = {}
    for change in breaking:
        removed_by_parent.setdefault(_parent(change.symbol), {})[change.symbol] = None

    added_by_parent: dict[str, dict[str, str]] = {}
    for change in non_breaking:
        if change.kind is ChangeKind.ADDED:
            added_by_parent.setdefault(_parent(change.symbol), {})[
                _short_name(change.symbol)
            ] = change.symbol

    renames: list[Rename] = []
    for parent, removed in removed_by_parent.items():
        added = added_by_parent.get(parent)
        if added is None:
            continue
        for removed_full in removed:
            removed_short = _short_name(removed_full)
            for added_short, added_full in added.items():
                sim = levenshtein_similarity(removed_short, added_short)
                suffixed = _has_rename_suffix(removed_short, added_short)
                if not (sim > 0.6 or suffixed):
                    continue
                confidence = "low"
                if sim > 0.8:
                    confidence = "medium"
                if suffixed or sim > 0.9:
                    confidence = "high"
                renames.append(Rename(removed=removed_full, added=added_full, confidence=confidence))
    return renames


def compare_tables(
    from_table: SymbolTable,
    to_table: SymbolTable,
    include_non_breaking: bool = True,
    filter_text: str = "",
    max_results: int = DEFAULT_MAX_RESULTS,
) -> DiffResult:
    """Diff two symbol tables.

    Non-breaking changes are always collected; ``include_non_breaking`` is accepted
    but has no effect. ``max_results`` defaults to 50 and is capped at 200.
    """
    if max_results <= 0:
        max_results = DEFAULT_MAX_RESULTS
    max_results = min(max_results, MAX_RESULTS_LIMIT)

    from_names = from_table.flat_names()
    to_names = to_table.flat_names()
    from_set = set(from_names)
    to_set = set(to_names)

    breaking = [
        Change(ChangeKind.REMOVED, name, "Symbol removed") for name in from_names if name not in to_set
    ]
    non_breaking = [
        Change(ChangeKind.ADDED, name, "Symbol added") for name in to_names if name not in from_set
    ]

    for name in from_names:
        old = from_table.flat.get(name)
        new = to_table.flat.get(name)
        if old is None or new is None:
            continue
        if not old.deprecated and new.deprecated:
            non_breaking.append(
                Change(ChangeKind.DEPRECATED_ADDED, name, "@deprecated annotation added")
            )
        elif old.deprecated and not new.deprecated:
            non_breaking.append(
                Change(ChangeKind.DEPRECATED_REMOVED, name, "@deprecated annotation removed")
            )
        if old.signature and new.signature and old.signature != new.signature:
            details = (
                f"Signature changed: {_quote(_truncate_sig(old.signature))} -> "
                f"{_quote(_truncate_sig(new.signature))}"
            )
            breaking.append(Change(ChangeKind.SIGNATURE_CHANGED, name, details))

    renames = _find_renames(breaking, non_breaking)

    if filter_text:
        needle = filter_text.lower()
        breaking = [c for c in breaking if needle in c.symbol.lower()]
        non_breaking = [c for c in non_breaking if needle in c.symbol.lower()]
        renames = [
            r for r in renames if needle in r.removed.lower() or needle in r.added.lower()
        ]

    if len(breaking) + len(non_breaking) + len(renames) > max_results:
        if len(breaking) > max_results:
            breaking = breaking[:max_results]
            non_breaking = []
            renames = []
        elif len(breaking) + len(renames) > max_results:
            renames = renames[: max_results - len(breaking)]
            non_breaking = []
        else:
            non_breaking = non_breaking[: max_results - len(breaking) - len(renames)]

    parts = []
    if breaking:
        parts.append(f"{len(breaking)} breaking")
    if non_breaking:
        parts.append(f"{len(non_breaking)} non-breaking")
    if renames:
        parts.append(f"{len(renames)} possible rename(s)")

    return DiffResult(
        module=from_table.module,
        breaking_changes=breaking,
        non_breaking=non_breaking,
        possible_renames=renames,
        summary=", ".join(parts) if parts else "No changes",
    )


def sort_diff_result(result: DiffResult) -> None:
    """Sort changes by symbol and renames by removed name, in place."""
    result.breaking_changes.sort(key=lambda c: c.symbol)
    result.non_breaking.sort(key=lambda c: c.symbol)
    result.possible_renames.sort(key=lambda r: r.removed)