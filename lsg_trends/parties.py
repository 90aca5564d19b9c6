"""Party label -> front (coalition) lookup."""

import logging
from types import MappingProxyType
from typing import Mapping

import pandas as pd

from .models import DEFAULT_FRONT

logger = logging.getLogger(__name__)

PARTY_COLUMN = "Party"
GROUP_COLUMN = "Party Group"


def normalize_label(val) -> str:
    """Trim and upper-case a party or front label; blanks and NaN become ''."""
    if val is None:
        return ""
    try:
        if pd.isna(val):
            return ""
    except (TypeError, ValueError):
        pass
    return str(val).strip().upper()


class PartyGroups:
    """Immutable party -> front table. Unknown parties resolve to IND."""

    def __init__(self, mapping: Mapping[str, str] = None):
        table = {}
        for party, front in (mapping or {}).items():
            party, front = normalize_label(party), normalize_label(front)
            if party and front:
                table[party] = front
        self._table = MappingProxyType(table)

    @classmethod
    def empty(cls):
        return cls()

    @classmethod
    def from_frame(cls, df: pd.DataFrame):
        if df is None or df.empty:
            return cls.empty()
        if PARTY_COLUMN not in df.columns or GROUP_COLUMN not in df.columns:
            logger.warning("Party group table lacks %r/%r columns; treating every party as %s",
                           PARTY_COLUMN, GROUP_COLUMN, DEFAULT_FRONT)
            return cls.empty()
        mapping = {}
        for party, front in zip(df[PARTY_COLUMN], df[GROUP_COLUMN]):
            party, front = normalize_label(party), normalize_label(front)
            # later rows win, same as a Map.set over the file
            if party and front:
                mapping[party] = front
        return cls(mapping)

    def resolve(self, party) -> str:
        return self._table.get(normalize_label(party), DEFAULT_FRONT)

    @property
    def table(self) -> Mapping[str, str]:
        return self._table

    def __len__(self):
        return len(self._table)

    def __contains__(self, party):
        return normalize_label(party) in self._table

    def __repr__(self):
        return f"PartyGroups({len(self._table)} parties)"
