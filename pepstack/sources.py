"""Interaction table sources.

The interaction table normally lives in the managed backend (a Supabase
``compound_interactions`` table reached through its PostgREST endpoint).  A
file-backed source reads the same rows from ``interactions.csv`` /
``interactions.json`` for self-hosted deployments.  Every source hands back
raw, schemaless rows; :func:`coerce_interactions` turns them into validated
:class:`~pepstack.models.InteractionRecord` objects and drops anything that
cannot be matched safely.

When a source fails or yields nothing usable the resolver switches to
``FALLBACK_INTERACTIONS`` instead; the two are never merged.
"""

from __future__ import annotations

import csv
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx
import yaml
from pydantic import ValidationError

from pepstack.config import Settings
from pepstack.models import InteractionRecord

logger = logging.getLogger(__name__)


class DataSourceUnavailable(RuntimeError):
    """Raised when a data source cannot be read (network, auth, missing file)."""


class DataHealthTracker:
    """Track data loading health and surface degradations."""

    def __init__(self) -> None:
        self._issues: Dict[str, str] = {}
        self._lock = threading.Lock()

    def record_success(self, source: str) -> None:
        with self._lock:
            self._issues.pop(source, None)

    def record_failure(self, source: str, error: str) -> None:
        with self._lock:
            self._issues[source] = error

    def reset(self) -> None:
        with self._lock:
            self._issues.clear()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            issues = [
                {"source": source, "error": message}
                for source, message in self._issues.items()
            ]
        status = "healthy" if not issues else "degraded"
        return {"status": status, "issues": issues}


FALLBACK_SOURCE_NAME = "fallback"

_FALLBACK_ROWS: List[Dict[str, Any]] = [
    {
        "compound_a": "Semaglutide",
        "compound_b": "Tirzepatide",
        "interaction_type": "avoid",
        "severity": "high",
        "description": "Do not combine GLP-1 agonists. Both target the same receptor pathway.",
        "recommendations": [
            "Use one or the other, never both",
            "Allow 2+ weeks washout when switching",
        ],
    },
    {
        "compound_a": "BPC-157",
        "compound_b": "TB-500",
        "interaction_type": "synergy",
        "severity": "low",
        "description": "Often stacked for enhanced healing. Complementary mechanisms.",
        "recommendations": ["Common healing stack", "Popular ratio is 1:1"],
    },
    {
        "compound_a": "Ipamorelin",
        "compound_b": "CJC-1295",
        "interaction_type": "synergy",
        "severity": "low",
        "description": "Classic GH secretagogue stack for amplified GH release.",
        "recommendations": ["Inject together", "Best before bed on empty stomach"],
    },
]

FALLBACK_INTERACTIONS: List[InteractionRecord] = [
    InteractionRecord.model_validate(row) for row in _FALLBACK_ROWS
]


def coerce_interactions(
    rows: Iterable[Any],
    origin: str = "interactions",
    health: Optional[DataHealthTracker] = None,
) -> List[InteractionRecord]:
    """Validate raw rows, keeping table order and skipping malformed entries."""

    records: List[InteractionRecord] = []
    skipped = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning("Skipping non-mapping interaction row %s from %s", index, origin)
            skipped += 1
            continue
        try:
            records.append(InteractionRecord.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed interaction row %s from %s: %s",
                index,
                origin,
                "; ".join(err["msg"] for err in exc.errors()),
            )
            skipped += 1

    if health is not None:
        key = f"{origin}:rows"
        if skipped:
            health.record_failure(key, f"Skipped {skipped} malformed interaction rows")
        else:
            health.record_success(key)
    return records


class InteractionSource:
    """Base class for anything that can produce the raw interaction table."""

    name = "interactions"

    def fetch_rows(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def load(self, health: Optional[DataHealthTracker] = None) -> List[InteractionRecord]:
        return coerce_interactions(self.fetch_rows(), origin=self.name, health=health)


class StaticInteractionSource(InteractionSource):
    """Serve rows held in memory."""

    def __init__(self, rows: Iterable[Any], name: str = "static") -> None:
        self._rows = list(rows)
        self.name = name

    def fetch_rows(self) -> List[Dict[str, Any]]:
        return [
            row.model_dump() if isinstance(row, InteractionRecord) else row
            for row in self._rows
        ]


class SupabaseRestClient:
    """Minimal PostgREST reader for the managed backend."""

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    def select(
        self, table: str, columns: str = "*", order: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params = {"select": columns}
        if order:
            params["order"] = order
        endpoint = f"{self.url}/rest/v1/{table}"
        try:
            with httpx.Client(
                timeout=httpx.Timeout(self._timeout), transport=self._transport
            ) as client:
                response = client.get(endpoint, params=params, headers=self._headers())
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise DataSourceUnavailable(f"Failed to fetch {table}: {exc}") from exc
        except ValueError as exc:
            raise DataSourceUnavailable(f"Invalid JSON from {table}: {exc}") from exc

        if not isinstance(payload, list):
            raise DataSourceUnavailable(
                f"Unexpected payload for {table}: expected a list of rows"
            )
        return payload


class SupabaseInteractionSource(InteractionSource):
    def __init__(self, client: SupabaseRestClient, table: str = "compound_interactions") -> None:
        self._client = client
        self.table = table
        self.name = f"supabase:{table}"

    def fetch_rows(self) -> List[Dict[str, Any]]:
        return self._client.select(self.table)


class FileInteractionSource(InteractionSource):
    """Read ``interactions.csv`` then ``interactions.json`` from a directory.

    Without either compiled file the curated ``interactions.d/*.yaml`` records
    are read directly, one pair per file.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.name = f"file:{self.data_dir}"

    def _read_yaml_dir(self, yaml_dir: Path) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for yml in sorted(yaml_dir.glob("*.yaml")):
            try:
                with open(yml, "r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except (OSError, yaml.YAMLError) as exc:
                raise DataSourceUnavailable(f"Failed to load {yml.name}: {exc}") from exc
            if isinstance(data, dict):
                data.setdefault("id", yml.stem)
            rows.append(data)
        return rows

    def fetch_rows(self) -> List[Dict[str, Any]]:
        csv_path = self.data_dir / "interactions.csv"
        json_path = self.data_dir / "interactions.json"
        yaml_dir = self.data_dir / "interactions.d"
        if not csv_path.exists() and not json_path.exists():
            if yaml_dir.is_dir():
                return self._read_yaml_dir(yaml_dir)
            raise DataSourceUnavailable(
                f"Missing data file at {csv_path}, {json_path} or {yaml_dir}"
            )

        rows: List[Dict[str, Any]] = []
        if csv_path.exists():
            try:
                with open(csv_path, newline="", encoding="utf-8") as fh:
                    for row in csv.DictReader(fh):
                        rows.append({k: v for k, v in row.items() if k and v not in (None, "")})
            except (OSError, csv.Error, UnicodeDecodeError) as exc:
                raise DataSourceUnavailable(f"Failed to load {csv_path.name}: {exc}") from exc

        if json_path.exists():
            try:
                with open(json_path, encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, ValueError) as exc:
                raise DataSourceUnavailable(f"Failed to load {json_path.name}: {exc}") from exc
            if isinstance(data, dict):
                data = data.get("interactions") or []
            if not isinstance(data, list):
                raise DataSourceUnavailable(
                    f"{json_path.name} must contain a list of interactions"
                )
            rows.extend(data)

        return rows


def build_supabase_client(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> Optional[SupabaseRestClient]:
    if not settings.supabase_enabled:
        return None
    return SupabaseRestClient(
        settings.supabase_url,
        settings.supabase_key,
        timeout=settings.http_timeout,
        transport=transport,
    )


def build_interaction_source(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> InteractionSource:
    """Pick the managed backend when configured, otherwise the data directory."""

    client = build_supabase_client(settings, transport=transport)
    if client is not None:
        return SupabaseInteractionSource(client, table=settings.interactions_table)
    return FileInteractionSource(settings.data_dir)
