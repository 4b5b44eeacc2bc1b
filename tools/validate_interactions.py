#!/usr/bin/env python3
from __future__ import annotations
import sys, yaml, pandas as pd
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pydantic import ValidationError

from pepstack.models import InteractionRecord
from pepstack.names import normalize_name

def main(peptides_csv="data/peptides.csv", interactions_dir="data/interactions.d") -> int:
    pep = Path(peptides_csv)
    idir = Path(interactions_dir)
    if not pep.exists() or not idir.exists():
        print(f"[err] missing {pep} or {idir}")
        return 1
    df = pd.read_csv(pep)
    known = {normalize_name(n) for n in df["name"].astype(str)}
    errs = 0
    seen = {}
    for yml in sorted(idir.glob("*.yaml")):
        with open(yml, "r", encoding="utf-8") as fh:
            y = yaml.safe_load(fh) or {}
        try:
            rec = InteractionRecord.model_validate(y)
        except ValidationError as exc:
            for e in exc.errors():
                loc = ".".join(str(p) for p in e["loc"]) or "record"
                print(f"[err] {yml.name}: {loc}: {e['msg']}")
            errs += 1
            continue
        for side in (rec.compound_a, rec.compound_b):
            tok = normalize_name(side)
            if not any(tok in k or k in tok for k in known):
                print(f"[warn] {yml.name}: '{side}' not in {pep.name}")
        key = tuple(sorted((normalize_name(rec.compound_a), normalize_name(rec.compound_b))))
        if key in seen:
            # Only the first file is ever matched for this pair
            print(f"[warn] {yml.name}: duplicates pair from {seen[key]}")
        else:
            seen[key] = yml.name
        if rec.severity is None:
            print(f"[warn] {yml.name}: no severity set")
    return 0 if errs==0 else 2

if __name__ == "__main__":
    raise SystemExit(main(*(sys.argv[1:3])))
