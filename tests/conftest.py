import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from pepstack.resolver import InteractionResolver
from pepstack.sources import InteractionSource, StaticInteractionSource


def _ensure_test_data():
    """Write minimal CSV fixtures and point the application to them.

    The module-level API app reads its settings from the environment at import
    time, so the data directory has to exist (and the managed backend has to be
    switched off) before any test imports it.
    """
    root = os.path.dirname(__file__)
    data_dir = os.path.join(root, "test_data")
    os.makedirs(data_dir, exist_ok=True)

    with open(os.path.join(data_dir, "interactions.csv"), "w", encoding="utf-8") as f:
        f.write("compound_a,compound_b,interaction_type,severity,description,recommendations\n")
        f.write('Semax,Selank,neutral,low,Common nootropic pairing,"[""Intranasal for both""]"\n')

    with open(os.path.join(data_dir, "peptides.csv"), "w", encoding="utf-8") as f:
        f.write("name\n")
        f.write("Selank\n")
        f.write("Semax\n")

    os.environ["PEPSTACK_DATA_DIR"] = data_dir
    for key in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_KEY", "PEPSTACK_DISPLAY_RULES"):
        os.environ.pop(key, None)


# Ensure data files exist before tests import the app
_ensure_test_data()


class CountingSource(InteractionSource):
    """Static rows that remember how often they were fetched."""

    def __init__(self, rows, error=None):
        self.rows = list(rows)
        self.error = error
        self.calls = 0
        self.name = "counting"

    def fetch_rows(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [dict(row) if isinstance(row, dict) else row for row in self.rows]


def make_row(a, b, interaction_type, severity=None, **extra):
    return {
        "compound_a": a,
        "compound_b": b,
        "interaction_type": interaction_type,
        "severity": severity,
        "description": extra.pop("description", f"{a} with {b}"),
        **extra,
    }


@pytest.fixture
def peptide_rows():
    return [
        make_row("Semaglutide", "Tirzepatide", "avoid", "high"),
        make_row("BPC-157", "TB-500 (Thymosin Beta-4)", "synergy", "low"),
        make_row("Ipamorelin", "CJC-1295", "synergy", "low"),
        make_row("Tesamorelin", "CJC-1295", "caution", "medium"),
        make_row("Semax", "Selank", "neutral"),
    ]


@pytest.fixture
def counting_source(peptide_rows):
    return CountingSource(peptide_rows)


@pytest.fixture
def resolver(counting_source):
    return InteractionResolver(counting_source)


@pytest.fixture
def fallback_resolver():
    """Resolver whose store is empty, so the built-in table is used."""
    return InteractionResolver(StaticInteractionSource([], name="empty-store"))
