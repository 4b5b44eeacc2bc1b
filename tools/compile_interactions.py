#!/usr/bin/env python3
from __future__ import annotations
import json, sys, yaml, pandas as pd
from pathlib import Path

COLUMNS = [
    "id", "compound_a", "compound_b", "interaction_type", "severity",
    "description", "mechanism", "recommendations",
]

def _text(v):
    if v is None: return ""
    return str(v).strip()

def _recommendations(v):
    if v is None: return "[]"
    if isinstance(v, str): v = [v]
    return json.dumps([str(x).strip() for x in v if str(x).strip()], ensure_ascii=False)

def compile_interactions(dir_in: Path, out_csv: Path) -> int:
    rows = []
    if dir_in.exists():
        for yml in sorted(dir_in.glob("*.yaml")):
            with open(yml, "r", encoding="utf-8") as fh:
                y = yaml.safe_load(fh) or {}
            rows.append({
                "id": _text(y.get("id")) or yml.stem,
                "compound_a": _text(y.get("compound_a")),
                "compound_b": _text(y.get("compound_b")),
                "interaction_type": _text(y.get("interaction_type")).lower(),
                "severity": _text(y.get("severity")).lower(),
                "description": _text(y.get("description")),
                "mechanism": _text(y.get("mechanism")),
                # JSON keeps recommendations containing ';' intact in a single cell
                "recommendations": _recommendations(y.get("recommendations")),
            })
    pd.DataFrame(rows, columns=COLUMNS).to_csv(out_csv, index=False)
    print(f"[ok] wrote {out_csv} ({len(rows)} rows)")
    return len(rows)

def main(data_dir="data"):
    base = Path(data_dir)
    compile_interactions(base/"interactions.d", base/"interactions.csv")
    return 0

if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv)>1 else "data"))
