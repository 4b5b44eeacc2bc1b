"""Peptide catalog used to populate compound selection."""

from __future__ import annotations

import csv
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from pepstack.config import Settings
from pepstack.models import StackPreset
from pepstack.sources import (
    DataHealthTracker,
    DataSourceUnavailable,
    SupabaseRestClient,
    build_supabase_client,
)

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 8

COMMON_STACKS: List[StackPreset] = [
    StackPreset(name="GH Stack", compounds=["Ipamorelin", "CJC-1295 (no DAC)"]),
    StackPreset(name="Healing Stack", compounds=["BPC-157", "TB-500 (Thymosin Beta-4)"]),
    StackPreset(name="Nootropic Stack", compounds=["Semax", "Selank"]),
]


class PeptideSource:
    name = "peptides"

    def fetch_names(self) -> List[str]:
        raise NotImplementedError


class StaticPeptideSource(PeptideSource):
    def __init__(self, names: Iterable[str], name: str = "static-peptides") -> None:
        self._names = list(names)
        self.name = name

    def fetch_names(self) -> List[str]:
        return list(self._names)


class SupabasePeptideSource(PeptideSource):
    def __init__(self, client: SupabaseRestClient, table: str = "peptides") -> None:
        self._client = client
        self.table = table
        self.name = f"supabase:{table}"

    def fetch_names(self) -> List[str]:
        rows = self._client.select(self.table, columns="name", order="name")
        return [str(row.get("name")) for row in rows if isinstance(row, dict) and row.get("name")]


class FilePeptideSource(PeptideSource):
    """Read the ``name`` column of ``peptides.csv``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.path = Path(data_dir) / "peptides.csv"
        self.name = f"file:{self.path}"

    def fetch_names(self) -> List[str]:
        if not self.path.exists():
            raise DataSourceUnavailable(f"Missing data file at {self.path}")
        try:
            with open(self.path, newline="", encoding="utf-8") as fh:
                return [row["name"] for row in csv.DictReader(fh) if row.get("name")]
        except (OSError, csv.Error, KeyError, UnicodeDecodeError) as exc:
            raise DataSourceUnavailable(f"Failed to load {self.path.name}: {exc}") from exc


def build_peptide_source(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> PeptideSource:
    client = build_supabase_client(settings, transport=transport)
    if client is not None:
        return SupabasePeptideSource(client, table=settings.peptides_table)
    return FilePeptideSource(settings.data_dir)


class PeptideCatalog:
    """Lazily loaded, sorted list of known peptide names."""

    def __init__(self, source: PeptideSource, health: Optional[DataHealthTracker] = None) -> None:
        self.source = source
        self.health = health or DataHealthTracker()
        self._names: Optional[List[str]] = None
        self._lock = threading.Lock()

    def names(self) -> List[str]:
        cached = self._names
        if cached is not None:
            return cached
        with self._lock:
            if self._names is not None:
                return self._names
            try:
                raw = self.source.fetch_names()
            except Exception as exc:
                # Not cached, so the next call retries the source.
                logger.error("Error loading peptides from %s: %s", self.source.name, exc)
                self.health.record_failure(self.source.name, f"Failed to load peptides: {exc}")
                return []
            cleaned = {name.strip() for name in raw if isinstance(name, str) and name.strip()}
            self._names = sorted(cleaned)
            self.health.record_success(self.source.name)
            logger.info("Loaded %s peptides from %s", len(self._names), self.source.name)
            return self._names

    def search(
        self,
        query: Optional[str],
        exclude: Sequence[str] = (),
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[str]:
        """Case-insensitive substring search, skipping names already selected."""

        if not query or not query.strip():
            return []
        needle = query.strip().lower()
        excluded = set(exclude)
        hits: List[str] = []
        for name in self.names():
            if needle in name.lower() and name not in excluded:
                hits.append(name)
                if len(hits) >= limit:
                    break
        return hits

    def clear_cache(self) -> None:
        with self._lock:
            self._names = None

    def presets(self) -> List[Dict[str, Any]]:
        return [preset.model_dump() for preset in COMMON_STACKS]
