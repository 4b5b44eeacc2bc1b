"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

DEFAULT_DATA_DIR = "data"
DEFAULT_INTERACTIONS_TABLE = "compound_interactions"
DEFAULT_PEPTIDES_TABLE = "peptides"
DEFAULT_HTTP_TIMEOUT = 10.0


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw or not raw.strip():
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    interactions_table: str = DEFAULT_INTERACTIONS_TABLE
    peptides_table: str = DEFAULT_PEPTIDES_TABLE
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    display_rules_path: Optional[Path] = None
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        timeout_raw = env.get("PEPSTACK_HTTP_TIMEOUT")
        try:
            http_timeout = float(timeout_raw) if timeout_raw else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            raise ValueError(
                f"PEPSTACK_HTTP_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from None

        rules_path = env.get("PEPSTACK_DISPLAY_RULES")

        return cls(
            data_dir=Path(env.get("PEPSTACK_DATA_DIR") or DEFAULT_DATA_DIR),
            supabase_url=(env.get("SUPABASE_URL") or "").rstrip("/") or None,
            supabase_key=env.get("SUPABASE_ANON_KEY") or env.get("SUPABASE_KEY") or None,
            interactions_table=env.get("PEPSTACK_INTERACTIONS_TABLE") or DEFAULT_INTERACTIONS_TABLE,
            peptides_table=env.get("PEPSTACK_PEPTIDES_TABLE") or DEFAULT_PEPTIDES_TABLE,
            http_timeout=http_timeout,
            display_rules_path=Path(rules_path) if rules_path else None,
            log_level=(env.get("PEPSTACK_LOG_LEVEL") or "INFO").upper(),
            cors_origins=_split_origins(env.get("PEPSTACK_CORS_ORIGINS")),
        )
