"""
Map geometry: feature -> result join and choropleth colours.

Boundary files come from several sources and vintages, so feature properties
are read through ordered key lists rather than fixed names.
"""

import json
import logging
from typing import Iterable, Mapping, Optional, Sequence

import geopandas as gpd

from .errors import MapDataError
from .models import HUNG, LocalBodyResult, WardResult
from .registry import normalize_district_name
from .tables import clean_text, ward_key

logger = logging.getLogger(__name__)

# Tried in order; first present, non-empty value wins.
CODE_KEYS = ("SEC_Kerala_code", "LSG_code", "LGD_Code")
NAME_KEYS = ("English Label", "LSGI_NAME", "LSGD")
DISTRICT_KEYS = ("District", "DISTRICT", "District_N")
WARD_KEYS = ("Ward_No", "ward_no", "Ward No", "WARD_NO", "Ward")

DEFAULT_COLOR = "#94a3b8"
FRONT_COLORS = {
    "LDF": "#ef4444",
    "UDF": "#2768F5",
    "NDA": "#f97316",
    HUNG: "#64748b",
    "IND": DEFAULT_COLOR,
}

# Ward maps of a single local body
NO_DATA_COLOR = "#e2e8f0"
WARD_WINNER_COLORS = {"LDF": "#ef4444", "UDF": "#2768F5", "NDA": "#f97316"}
WARD_WINNER_OTHER = "#64748b"
WARD_LEADING_COLORS = {"LDF": "#fca5a5", "UDF": "#2768F5", "NDA": "#fdba74"}
WARD_LEADING_OTHER = "#cbd5e1"

FILL_PROPERTY = "_fillColor"


# ---------------------------------------------------------------------------
# Property lookup
# ---------------------------------------------------------------------------
def first_present(properties: Optional[Mapping], keys: Sequence[str]) -> Optional[str]:
    if not properties:
        return None
    for key in keys:
        val = clean_text(properties.get(key))
        if val:
            return val
    return None


def _props(feature) -> Mapping:
    if not isinstance(feature, Mapping):
        return {}
    return feature.get("properties") or {}


def feature_code(feature) -> Optional[str]:
    return first_present(_props(feature), CODE_KEYS)


def feature_name(feature) -> str:
    return first_present(_props(feature), NAME_KEYS) or ""


def feature_district(feature) -> Optional[str]:
    raw = first_present(_props(feature), DISTRICT_KEYS)
    return normalize_district_name(raw) if raw else None


def feature_ward_no(feature) -> Optional[str]:
    raw = first_present(_props(feature), WARD_KEYS)
    return ward_key(raw) if raw else None


def feature_selection(feature):
    """(code, district) for a clicked feature, or None when either is missing."""
    code, district = feature_code(feature), feature_district(feature)
    if code and district:
        return code, district
    return None


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------
def color_for_front(tag: Optional[str]) -> str:
    return FRONT_COLORS.get(tag, DEFAULT_COLOR)


def color_feature(feature, results: Mapping[str, LocalBodyResult]) -> str:
    """Fill colour of a local-body feature by its leading front; unmatched features are neutral."""
    code = feature_code(feature)
    result = results.get(code) if code else None
    if result is None:
        return DEFAULT_COLOR
    return color_for_front(result.leading_front)


def ward_color(ward: Optional[WardResult]) -> str:
    if ward is None:
        return NO_DATA_COLOR
    if ward.winner is not None:
        return WARD_WINNER_COLORS.get(ward.winner.front, WARD_WINNER_OTHER)
    if ward.leading_hint is not None:
        return WARD_LEADING_COLORS.get(ward.leading_hint.front, WARD_LEADING_OTHER)
    return NO_DATA_COLOR


def _restyled(collection, extra_props):
    features = []
    for feature in collection.get("features") or []:
        out = dict(feature)
        props = dict(_props(feature))
        props.update(extra_props(feature))
        out["properties"] = props
        features.append(out)
    styled = dict(collection)
    styled["features"] = features
    return styled


def style_features(collection: Mapping, results: Mapping[str, LocalBodyResult]) -> dict:
    """Copy of a FeatureCollection with ``_code`` and ``_fillColor`` set on every feature."""
    return _restyled(collection, lambda f: {
        "_code": feature_code(f),
        FILL_PROPERTY: color_feature(f, results),
    })


def style_ward_features(collection: Mapping, result: Optional[LocalBodyResult]) -> dict:
    wards = result.wards if result is not None else {}

    def extra(feature):
        ward_no = feature_ward_no(feature)
        return {
            "_wardNo": ward_no,
            FILL_PROPERTY: ward_color(wards.get(ward_no)) if ward_no else NO_DATA_COLOR,
        }
    return _restyled(collection, extra)


# ---------------------------------------------------------------------------
# Reading boundary files
# ---------------------------------------------------------------------------
def read_feature_collection(source, layer: Optional[str] = None) -> dict:
    """
    GeoJSON or TopoJSON as a FeatureCollection dict.

    ``source`` is a path or a file-like object. TopoJSON arcs are decoded by
    GDAL; the first object of a topology is read unless ``layer`` names one.
    """
    try:
        frame = gpd.read_file(source, layer=layer) if layer else gpd.read_file(source)
    except (OSError, ValueError, RuntimeError) as e:
        raise MapDataError(f"Unreadable map data: {e}") from e
    logger.debug("Read %d map features", len(frame))
    return json.loads(frame.to_json())


def feature_by_code(collection: Mapping, code: Optional[str]):
    if not code:
        return None
    for feature in collection.get("features") or []:
        if feature_code(feature) == code:
            return feature
    return None


def unmatched_codes(collection: Mapping, known_codes: Iterable[str]):
    """Feature codes (and features with no code) that have no entry in ``known_codes``."""
    known = set(known_codes)
    missing, no_code = [], 0
    for feature in collection.get("features") or []:
        code = feature_code(feature)
        if code is None:
            no_code += 1
        elif code not in known:
            missing.append(code)
    return missing, no_code
