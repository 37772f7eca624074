from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .constants import KNOWN_COLUMNS, SYNONYMS


def normalize(name: str) -> str:
    return name.strip().lower()


def map_headers(columns: List[str], required: Iterable[str]) -> Dict[str, str]:
    lower = {c: normalize(c) for c in columns}
    mapping: Dict[str, str] = {}
    for req in required:
        req_l = normalize(req)
        # exact match
        for c, lc in lower.items():
            if lc == req_l:
                mapping[req] = c
                break
        else:
            syn = SYNONYMS.get(req_l)
            if syn:
                for c, lc in lower.items():
                    if lc in syn:
                        mapping[req] = c
                        break
    return mapping


def canonical_rename(df):
    """Rename known synonyms to their canonical labels in-place when found."""
    labels = {normalize(c): c for c in KNOWN_COLUMNS}
    reverse = {}
    for canon, syns in SYNONYMS.items():
        for s in syns:
            reverse[s] = canon
    rename_map = {}
    for c in df.columns:
        lc = normalize(str(c))
        canon_lower = reverse.get(lc, lc)
        if canon_lower in labels and labels[canon_lower] != c:
            rename_map[c] = labels[canon_lower]
    if rename_map:
        df.rename(columns=rename_map, inplace=True)
    return df


# Cell coercion. Blank cells arrive as NaN/NaT and become None.

def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_text(value) -> Optional[str]:
    if is_blank(value):
        return None
    # Excel hands numeric ids back as floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_float(value) -> Optional[float]:
    if is_blank(value):
        return None
    return float(value)


def to_int(value) -> Optional[int]:
    if is_blank(value):
        return None
    return int(float(value))


def to_bool(value, default: bool = False) -> bool:
    if is_blank(value):
        return default
    if isinstance(value, str):
        return normalize(value) in {"true", "yes", "y", "1", "x", "active"}
    return bool(value)


def to_date(value) -> Optional[date]:
    if is_blank(value):
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()
