"""
Local-body registry: parsing, district-name normalization and joins with results.

District names reach us spelled several ways. Two separate rules exist on
purpose and must not be merged:

* ``normalize_district_name`` is the registry spelling (official names).
* ``tile_district_name`` is the spelling used in per-local-body geometry file
  paths, where the tile set was published as "Thiruvanathapuram".
"""

import dataclasses
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .models import (
    BASE_TYPES,
    BLOCK_PANCHAYAT,
    DISTRICT_PANCHAYAT,
    FRONTS,
    GRAMA_PANCHAYAT,
    MUNICIPAL_CORPORATION,
    MUNICIPALITY,
    NOT_AVAILABLE,
    LocalBody,
    LocalBodyResult,
    PollingStation,
    Ward,
)
from .tables import clean_text, records, to_int

logger = logging.getLogger(__name__)

STATEWIDE = "Kerala"

DISTRICT_EXCEPTIONS = {
    "Kasargod": "Kasaragod",
    "Thiruvanathapuram": "Thiruvananthapuram",
}
TILE_DISTRICT_EXCEPTIONS = {
    "Thiruvananthapuram": "Thiruvanathapuram",
}

LOCAL_BODY_COLUMNS = {
    "lb_code": ["Local Body Code", "LB_Code"],
    "name": ["Local Body Name", "LB_Name"],
    "lb_type": ["Local Body Type", "LB_Type"],
    "district": ["District"],
    "total_wards": ["Ward Count", "Total Wards"],
}
WARD_COLUMNS = {
    "ward_code": ["Ward Code"],
    "name": ["Ward Name"],
    "lb_code": ["Local Body Code", "LB_Code"],
    "total": ["Total"],
    "male": ["Males"],
    "female": ["Females"],
    "other": ["Others"],
}
STATION_COLUMNS = {
    "ps_no": ["PS No"],
    "name": ["PS Name"],
    "ward_code": ["Ward Code"],
    "lb_code": ["Local Body Code", "LB_Code"],
}

# KPI tile id -> local body type it counts
KPI_TYPES = {
    "corporations": MUNICIPAL_CORPORATION,
    "municipalities": MUNICIPALITY,
    "grama_panchayats": GRAMA_PANCHAYAT,
    "block_panchayats": BLOCK_PANCHAYAT,
    "district_panchayats": DISTRICT_PANCHAYAT,
}
# KPI tiles that do not list local bodies
AGGREGATE_KPIS = ("voters", "polling_stations", "total_wards")

# Plural labels used by drill-down lists
DRILLDOWN_LABELS = {
    "Corporations": MUNICIPAL_CORPORATION,
    "Municipalities": MUNICIPALITY,
    "Grama Panchayats": GRAMA_PANCHAYAT,
    "Block Panchayats": BLOCK_PANCHAYAT,
    "District Panchayats": DISTRICT_PANCHAYAT,
}

# District map tab -> tiers drawn on it
TAB_TYPES = {
    "grama": BASE_TYPES,
    "block": (BLOCK_PANCHAYAT,),
    "district": (DISTRICT_PANCHAYAT,),
}


# ---------------------------------------------------------------------------
# District names
# ---------------------------------------------------------------------------
def _title_words(s: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), s.lower())


def normalize_district_name(raw) -> str:
    """Registry spelling: trimmed, each word capitalised, known misspellings corrected."""
    name = _title_words(clean_text(raw))
    return DISTRICT_EXCEPTIONS.get(name, name)


def tile_district_name(name) -> str:
    """Spelling of a district inside per-local-body geometry file paths."""
    name = str(name or "")
    fixed = name[:1].upper() + name[1:].lower()
    return TILE_DISTRICT_EXCEPTIONS.get(fixed, fixed)


# ---------------------------------------------------------------------------
# Table parsing
# ---------------------------------------------------------------------------
def local_bodies_from_frame(df: pd.DataFrame) -> List[LocalBody]:
    out = []
    for rec in records(df, LOCAL_BODY_COLUMNS):
        code = clean_text(rec["lb_code"])
        if not code:
            continue
        out.append(LocalBody(
            lb_code=code,
            name=clean_text(rec["name"]),
            lb_type=clean_text(rec["lb_type"]),
            district=normalize_district_name(rec["district"]),
            total_wards=to_int(rec["total_wards"]),
        ))
    return out


def wards_from_frame(df: pd.DataFrame) -> List[Ward]:
    out = []
    for rec in records(df, WARD_COLUMNS):
        code = clean_text(rec["ward_code"])
        if not code:
            continue
        out.append(Ward(
            ward_code=code,
            name=clean_text(rec["name"]),
            # last three characters of the ward code are the ward number
            ward_no=to_int(code[-3:]),
            lb_code=clean_text(rec["lb_code"]),
            total_voters=to_int(rec["total"]),
            male_voters=to_int(rec["male"]),
            female_voters=to_int(rec["female"]),
            other_voters=to_int(rec["other"]),
        ))
    return out


def stations_from_frame(df: pd.DataFrame) -> List[PollingStation]:
    out = []
    for rec in records(df, STATION_COLUMNS):
        lb_code = clean_text(rec["lb_code"])
        if not lb_code:
            continue
        out.append(PollingStation(
            ps_no=to_int(rec["ps_no"]),
            name=clean_text(rec["name"]),
            ward_code=clean_text(rec["ward_code"]),
            lb_code=lb_code,
        ))
    return out


# ---------------------------------------------------------------------------
# Joins
# ---------------------------------------------------------------------------
def index_by_code(local_bodies: Iterable[LocalBody]) -> Dict[str, LocalBody]:
    return {lb.lb_code: lb for lb in local_bodies}


def join_results(local_bodies: Iterable[LocalBody],
                 results: Mapping[str, LocalBodyResult]) -> Dict[str, LocalBodyResult]:
    """Results for codes present in both sources, named and placed by the registry."""
    joined = {}
    for lb in local_bodies:
        result = results.get(lb.lb_code)
        if result is None:
            continue
        joined[lb.lb_code] = dataclasses.replace(
            result,
            lb_name=lb.name or result.lb_name,
            district=lb.district or result.district,
        )
    return joined


def local_body_summaries(local_bodies: Iterable[LocalBody],
                         results: Mapping[str, LocalBodyResult]) -> List[dict]:
    """One view row per registered local body; a missing result shows as N/A and zeros."""
    rows = []
    for lb in local_bodies:
        result = results.get(lb.lb_code)
        seats = dict(result.seats) if result else {front: 0 for front in FRONTS}
        rows.append({
            "lb_code": lb.lb_code,
            "name": lb.name,
            "lb_type": lb.lb_type,
            "district": lb.district,
            "total_wards": lb.total_wards,
            "wards_declared": result.wards_declared if result else 0,
            "leading_front": result.leading_front if result else NOT_AVAILABLE,
            "seats": seats,
        })
    return rows


# ---------------------------------------------------------------------------
# Dashboard views
# ---------------------------------------------------------------------------
def _codes(local_bodies, types=None):
    return {lb.lb_code for lb in local_bodies if types is None or lb.lb_type in types}


def dashboard_counts(local_bodies: List[LocalBody], wards: List[Ward],
                     stations: List[PollingStation]) -> Dict[str, int]:
    """KPI tile values. Voters and stations only count the three base tiers."""
    base = _codes(local_bodies, BASE_TYPES)
    counts = {kpi: sum(1 for lb in local_bodies if lb.lb_type == lb_type)
              for kpi, lb_type in KPI_TYPES.items()}
    counts["voters"] = sum(w.total_voters for w in wards if w.lb_code in base)
    counts["polling_stations"] = sum(1 for ps in stations if ps.lb_code in base)
    counts["total_wards"] = sum(lb.total_wards for lb in local_bodies)
    return counts


def _station_count(lb_type, lbs, district_lbs, stations):
    # district panchayats have no stations of their own; use their grama panchayats
    if lb_type == DISTRICT_PANCHAYAT:
        codes = _codes(district_lbs, (GRAMA_PANCHAYAT,))
    else:
        codes = _codes(lbs)
    return sum(1 for ps in stations if ps.lb_code in codes)


def district_table(local_bodies: List[LocalBody], wards: List[Ward],
                   stations: List[PollingStation], kpi: Optional[str] = None) -> List[dict]:
    """Per-district rows for the data table, filtered by the selected KPI tile."""
    if kpi is not None and kpi not in KPI_TYPES and kpi not in AGGREGATE_KPIS:
        raise ValueError(f"Unknown KPI: {kpi}")

    rows = []
    for district in sorted({lb.district for lb in local_bodies}):
        district_lbs = [lb for lb in local_bodies if lb.district == district]

        if kpi in KPI_TYPES:
            lb_type = KPI_TYPES[kpi]
            selected = [lb for lb in district_lbs if lb.lb_type == lb_type]
            kpi_count = len(selected)
            codes = _codes(selected)
            voters = sum(w.total_voters for w in wards if w.lb_code in codes)
            station_count = _station_count(lb_type, selected, district_lbs, stations)
            if kpi_count == 0:
                continue
        else:
            selected = district_lbs
            if kpi == "total_wards":
                kpi_count = sum(lb.total_wards for lb in district_lbs)
            else:
                kpi_count = len(district_lbs)
            base = _codes(district_lbs, BASE_TYPES)
            voters = sum(w.total_voters for w in wards if w.lb_code in base)
            station_count = sum(1 for ps in stations if ps.lb_code in base)

        rows.append({
            "district": district,
            "kpi_count": kpi_count,
            "total_wards": sum(lb.total_wards for lb in selected),
            "voters": voters,
            "stations": station_count,
        })
    return rows


def local_body_stats(lb: LocalBody, local_bodies: List[LocalBody], wards: List[Ward],
                     stations: List[PollingStation]) -> dict:
    lb_wards = [w for w in wards if w.lb_code == lb.lb_code]
    district_lbs = [x for x in local_bodies if x.district == lb.district]
    return {
        "wards": len(lb_wards),
        "voters": sum(w.total_voters for w in lb_wards),
        "male_voters": sum(w.male_voters for w in lb_wards),
        "female_voters": sum(w.female_voters for w in lb_wards),
        "other_voters": sum(w.other_voters for w in lb_wards),
        "polling_stations": _station_count(lb.lb_type, [lb], district_lbs, stations),
    }


def search_local_bodies(local_bodies: Iterable[LocalBody], term: str, limit: int = 10) -> List[LocalBody]:
    term = clean_text(term).lower()
    if not term:
        return []
    return [lb for lb in local_bodies if term in lb.name.lower()][:limit]


def filter_local_bodies(local_bodies: Iterable[LocalBody], district: Optional[str] = None,
                        lb_type: Optional[str] = None) -> List[LocalBody]:
    """Drill-down list. ``district`` of None or "Kerala" means statewide; plural type labels accepted."""
    if lb_type:
        lb_type = DRILLDOWN_LABELS.get(lb_type, lb_type)
    out = []
    for lb in local_bodies:
        if district and district != STATEWIDE and lb.district != district:
            continue
        if lb_type and lb.lb_type != lb_type:
            continue
        out.append(lb)
    return out


def tab_local_bodies(local_bodies: Iterable[LocalBody], tab: str) -> List[LocalBody]:
    types = TAB_TYPES.get(tab, ())
    return [lb for lb in local_bodies if lb.lb_type in types]
