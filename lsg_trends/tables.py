"""
Helpers for reading loosely-typed tabular rows.

Source CSVs change column spelling between releases, carry blank cells and
occasionally numbers with stray text, so every reader goes through these.
"""

import math
import re

import pandas as pd

_BLANKS = {"", "nan", "none", "null", "undefined"}


def _norm_key(s):
    return re.sub(r"[^0-9a-z]+", "_", str(s).strip().lower()).strip("_")


def build_colmap(df: pd.DataFrame):
    """Return mapping of normalized name -> actual column name for a DataFrame."""
    return {_norm_key(c): c for c in df.columns}


def find_col(colmap, aliases):
    """Find the first existing column by trying alias list (normalized)."""
    for a in aliases:
        key = _norm_key(a)
        if key in colmap:
            return colmap[key]
    return None


def clean_text(val) -> str:
    """Trimmed string form of a cell; NaN/None/blank markers become ''."""
    if val is None:
        return ""
    if isinstance(val, float):
        if math.isnan(val):
            return ""
        if val.is_integer():
            return str(int(val))
    s = str(val).strip()
    return "" if s.lower() in _BLANKS else s


def to_int(val, default=0) -> int:
    """Robust non-negative integer parser: blanks, NaN, '1,204', '12.0' all handled."""
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, int):
        return max(val, 0)
    s = clean_text(val).replace(",", "")
    if not s:
        return default
    m = re.search(r"[-+]?\d*\.?\d+", s)
    if not m:
        return default
    try:
        return max(int(float(m.group())), 0)
    except (ValueError, OverflowError):
        return default


def ward_key(val) -> str:
    """Canonical ward number: '01', '1.0' and 1 all become '1'; other text is kept trimmed."""
    s = clean_text(val)
    try:
        num = float(s)
    except ValueError:
        return s
    if math.isfinite(num) and num.is_integer():
        return str(int(num))
    return s


def records(df: pd.DataFrame, columns):
    """
    Yield one dict per row, keyed by the canonical names in ``columns``.

    ``columns`` maps canonical name -> list of accepted header spellings.
    Missing columns yield '' for every row.
    """
    if df is None or df.empty:
        return
    colmap = build_colmap(df)
    resolved = {name: find_col(colmap, aliases) for name, aliases in columns.items()}
    for raw in df.to_dict("records"):
        yield {name: (raw.get(col, "") if col else "") for name, col in resolved.items()}
