"""Pairwise interaction resolution for peptide stacks."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pepstack.models import (
    TYPE_PRIORITY,
    InteractionRecord,
    StackInteraction,
    StackReport,
    StackSummary,
)
from pepstack.names import names_overlap, normalize_name
from pepstack.sources import (
    FALLBACK_INTERACTIONS,
    FALLBACK_SOURCE_NAME,
    DataHealthTracker,
    InteractionSource,
)

logger = logging.getLogger(__name__)

_CACHE_SEPARATOR = "_"

_Table = List[Tuple[InteractionRecord, str, str]]


def pair_cache_key(token_a: str, token_b: str) -> str:
    return _CACHE_SEPARATOR.join(sorted((token_a, token_b)))


def summarize_interactions(results: Iterable[InteractionRecord]) -> StackSummary:
    """Reduce stack results to per-type counts and the worst classification."""

    counts = {"avoid": 0, "caution": 0, "synergy": 0, "neutral": 0}
    total = 0
    for result in results:
        total += 1
        counts[result.interaction_type] += 1

    if counts["avoid"]:
        worst = "avoid"
    elif counts["caution"]:
        worst = "caution"
    else:
        worst = None

    return StackSummary(
        total=total,
        **counts,
        has_warnings=bool(counts["avoid"] or counts["caution"]),
        worst_severity=worst,
    )


class InteractionResolver:
    """Match compound names against the interaction table.

    Owns two caches: the loaded table (fetched lazily from ``source``) and a
    pair memo keyed by canonical tokens.  Both are dropped together by
    :meth:`clear_cache`.  The resolver never raises because of its data
    source; failures are logged, recorded in :attr:`health` and masked by the
    built-in fallback table.
    """

    def __init__(
        self,
        source: InteractionSource,
        fallback: Optional[Sequence[InteractionRecord]] = None,
        health: Optional[DataHealthTracker] = None,
    ) -> None:
        self.source = source
        self.fallback = list(FALLBACK_INTERACTIONS if fallback is None else fallback)
        self.health = health or DataHealthTracker()
        self._table: Optional[_Table] = None
        self._active_source: Optional[str] = None
        self._pair_cache: Dict[str, Optional[InteractionRecord]] = {}
        self._load_lock = threading.Lock()
        self._cache_lock = threading.Lock()

    # Loading -------------------------------------------------------------------------

    def _fetch_table(self) -> Tuple[_Table, str]:
        try:
            records = self.source.load(health=self.health)
        except Exception as exc:
            logger.error("Error loading interactions from %s: %s", self.source.name, exc)
            self.health.record_failure(self.source.name, f"Failed to load interactions: {exc}")
            records, origin = self.fallback, FALLBACK_SOURCE_NAME
        else:
            if records:
                self.health.record_success(self.source.name)
                origin = self.source.name
            else:
                logger.warning(
                    "No interactions available from %s; using built-in fallback",
                    self.source.name,
                )
                self.health.record_failure(self.source.name, "Interaction table is empty")
                records, origin = self.fallback, FALLBACK_SOURCE_NAME

        table = [
            (record, normalize_name(record.compound_a), normalize_name(record.compound_b))
            for record in records
        ]
        logger.info("Loaded %s interactions from %s", len(table), origin)
        return table, origin

    def _ensure_table(self) -> _Table:
        table = self._table
        if table is not None:
            return table
        with self._load_lock:
            if self._table is None:
                self._table, self._active_source = self._fetch_table()
            return self._table

    def load_interactions(self) -> List[InteractionRecord]:
        """Return the interaction table, loading it on first use."""

        return [record for record, _, _ in self._ensure_table()]

    @property
    def using_fallback(self) -> bool:
        return self._active_source == FALLBACK_SOURCE_NAME

    # Matching ------------------------------------------------------------------------

    def check_interaction(self, compound_a: Any, compound_b: Any) -> Optional[InteractionRecord]:
        """Return the first documented interaction between two compounds, if any."""

        token_a = normalize_name(compound_a)
        token_b = normalize_name(compound_b)
        if not token_a or not token_b:
            return None

        key = pair_cache_key(token_a, token_b)
        cache = self._pair_cache
        if key in cache:
            return cache[key]

        match: Optional[InteractionRecord] = None
        for record, rec_a, rec_b in self._ensure_table():
            if (names_overlap(token_a, rec_a) and names_overlap(token_b, rec_b)) or (
                names_overlap(token_a, rec_b) and names_overlap(token_b, rec_a)
            ):
                match = record
                break

        with self._cache_lock:
            cache[key] = match
        return match

    def check_stack_interactions(self, compounds: Optional[Sequence[Any]]) -> List[StackInteraction]:
        """Check every pair in a stack, most serious interaction types first."""

        if not compounds or len(compounds) < 2:
            return []

        items = list(compounds)
        results: List[StackInteraction] = []
        for i in range(len(items)):
            for j in range(i + 1, len(items)):
                record = self.check_interaction(items[i], items[j])
                if record is not None:
                    results.append(StackInteraction.from_record(record, items[i], items[j]))

        results.sort(key=lambda result: TYPE_PRIORITY[result.interaction_type])
        return results

    def get_stack_summary(self, compounds: Optional[Sequence[Any]]) -> StackReport:
        interactions = self.check_stack_interactions(compounds)
        return StackReport(summary=summarize_interactions(interactions), interactions=interactions)

    # Lookups -------------------------------------------------------------------------

    def get_interactions_for_compound(self, compound: Any) -> List[InteractionRecord]:
        token = normalize_name(compound)
        if not token:
            return []
        return [
            record
            for record, rec_a, rec_b in self._ensure_table()
            if names_overlap(token, rec_a) or names_overlap(token, rec_b)
        ]

    def get_all_compounds_with_interactions(self) -> List[str]:
        names = set()
        for record, _, _ in self._ensure_table():
            names.add(record.compound_a)
            names.add(record.compound_b)
        return sorted(names)

    # Cache management ----------------------------------------------------------------

    def clear_cache(self) -> None:
        with self._load_lock, self._cache_lock:
            self._pair_cache = {}
            self._table = None
            self._active_source = None

    def stats(self) -> Dict[str, Any]:
        table = self._table
        return {
            "source": self._active_source,
            "using_fallback": self.using_fallback,
            "interactions_loaded": len(table) if table is not None else 0,
            "cached_pairs": len(self._pair_cache),
            **self.health.snapshot(),
        }
