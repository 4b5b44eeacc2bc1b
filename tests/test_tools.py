import importlib.util
import os
import runpy
import sys
from pathlib import Path

import pandas as pd

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from pepstack.sources import FileInteractionSource


def _load_tool(name):
    path = Path(ROOT) / "tools" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"pepstack_tools_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write(path, text):
    path.write_text(text, encoding="utf-8")


def test_compile_interactions_round_trips_through_file_source(tmp_path):
    compile_tool = _load_tool("compile_interactions")
    idir = tmp_path / "interactions.d"
    idir.mkdir()
    _write(
        idir / "a-semaglutide.yaml",
        "compound_a: Semaglutide\n"
        "compound_b: Tirzepatide\n"
        "interaction_type: Avoid\n"
        "severity: HIGH\n"
        "description: Same receptor pathway\n"
        "recommendations:\n"
        "  - Use one or the other; never both\n"
        "  - Allow 2+ weeks washout\n",
    )
    _write(
        idir / "b-semax.yaml",
        "compound_a: Semax\ncompound_b: Selank\ninteraction_type: neutral\n",
    )

    assert compile_tool.main(str(tmp_path)) == 0

    df = pd.read_csv(tmp_path / "interactions.csv")
    assert list(df["id"]) == ["a-semaglutide", "b-semax"]

    records = FileInteractionSource(tmp_path).load()
    assert records[0].interaction_type == "avoid"
    assert records[0].severity == "high"
    assert records[0].recommendations == [
        "Use one or the other; never both",
        "Allow 2+ weeks washout",
    ]
    assert records[1].severity is None
    assert records[1].recommendations == []


def test_validate_interactions_reports_errors(tmp_path, capsys):
    validate_tool = _load_tool("validate_interactions")
    _write(tmp_path / "peptides.csv", "name\nSemax\nSelank\nBPC-157\n")
    idir = tmp_path / "interactions.d"
    idir.mkdir()
    _write(idir / "ok.yaml", "compound_a: Semax\ncompound_b: Selank\ninteraction_type: neutral\nseverity: low\n")
    _write(idir / "dup.yaml", "compound_a: Selank\ncompound_b: Semax\ninteraction_type: neutral\nseverity: low\n")
    _write(idir / "unknown.yaml", "compound_a: BPC-157\ncompound_b: Mystery\ninteraction_type: caution\n")
    _write(idir / "bad.yaml", "compound_a: BPC-157\ncompound_b: Semax\ninteraction_type: explosive\n")

    code = validate_tool.main(str(tmp_path / "peptides.csv"), str(idir))
    out = capsys.readouterr().out

    assert code == 2
    assert "[err] bad.yaml: interaction_type" in out
    assert "[warn] unknown.yaml: 'Mystery' not in peptides.csv" in out
    assert "[warn] unknown.yaml: no severity set" in out
    assert "[warn] ok.yaml: duplicates pair from dup.yaml" in out


def test_validate_interactions_clean_data(tmp_path):
    validate_tool = _load_tool("validate_interactions")
    _write(tmp_path / "peptides.csv", "name\nIpamorelin\nCJC-1295 (no DAC)\n")
    idir = tmp_path / "interactions.d"
    idir.mkdir()
    _write(idir / "gh.yaml", "compound_a: Ipamorelin\ncompound_b: CJC-1295\ninteraction_type: synergy\nseverity: low\n")

    assert validate_tool.main(str(tmp_path / "peptides.csv"), str(idir)) == 0
    assert validate_tool.main(str(tmp_path / "missing.csv"), str(idir)) == 1


def test_shipped_interaction_data_validates():
    validate_tool = _load_tool("validate_interactions")
    data = Path(ROOT) / "data"
    assert validate_tool.main(str(data / "peptides.csv"), str(data / "interactions.d")) == 0


def test_gunicorn_config_uses_uvicorn_workers(monkeypatch):
    monkeypatch.setenv("WEB_CONCURRENCY", "3")
    config = runpy.run_path(str(Path(ROOT) / "gunicorn_conf.py"))
    assert config["worker_class"] == "uvicorn.workers.UvicornWorker"
    assert config["workers"] == 3
