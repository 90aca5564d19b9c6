"""
Fetching the dashboard's inputs.

Registry tables (local bodies, wards, polling stations) must all load; their
failures propagate as DataLoadError. The trends feed and the party-group table
are best effort: failures are logged and yield empty results.
"""

import io
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd
import requests

from .aggregator import aggregate, rows_from_frame
from .config import Settings, is_remote, join_location
from .errors import DataLoadError, MapDataError
from .geometry import read_feature_collection
from .models import LocalBody, LocalBodyResult, PollingStation, Ward
from .parties import PartyGroups
from .registry import (
    local_bodies_from_frame,
    stations_from_frame,
    tile_district_name,
    wards_from_frame,
)

logger = logging.getLogger(__name__)

LOCAL_BODIES_CSV = "local_bodies.csv"
WARDS_CSV = "wards.csv"
POLLING_STATIONS_CSV = "polling_stations.csv"
PARTY_GROUPS_CSV = "party_and_group.csv"

STATE_MAP_FILES = {
    "district": "districts.json",
    "block": "block-panchayats.json",
    "grama": "grama-panchayats.json",
}


# ---------------------------------------------------------------------------
# Query cache
# ---------------------------------------------------------------------------
class QueryCache:
    """
    Results of loaders keyed by (query name, params).

    Each consumer owns one instance and passes it to the loaders; a changed
    parameter (map tab, district, file) is simply a different key.
    """

    def __init__(self):
        self._entries = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(name, params):
        return (name, tuple(params))

    def get_or_load(self, name, params, loader):
        key = self._key(name, params)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = loader()
        with self._lock:
            self._entries[key] = value
        return value

    def invalidate(self, name=None):
        with self._lock:
            if name is None:
                self._entries.clear()
            else:
                for key in [k for k in self._entries if k[0] == name]:
                    del self._entries[key]

    def __contains__(self, name):
        with self._lock:
            return any(k[0] == name for k in self._entries)

    def __len__(self):
        with self._lock:
            return len(self._entries)


def _cached(cache, name, params, loader):
    if cache is None:
        return loader()
    return cache.get_or_load(name, params, loader)


# ---------------------------------------------------------------------------
# Raw reads
# ---------------------------------------------------------------------------
def read_text(location: str, timeout: float = 30.0) -> str:
    """Text of a local file or http(s) URL. Raises requests/OS errors unchanged."""
    if is_remote(location):
        response = requests.get(location, timeout=timeout)
        response.raise_for_status()
        response.encoding = response.encoding or "utf-8"
        return response.text
    with open(location, encoding="utf-8-sig") as f:
        return f.read()


def read_table(location: str, timeout: float = 30.0) -> pd.DataFrame:
    """A delimited table with every cell kept as text (blank cells become '')."""
    text = read_text(location, timeout=timeout)
    if not text.strip():
        return pd.DataFrame()
    return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False,
                       skip_blank_lines=True)


def _load_registry_table(source, location, parse, timeout):
    try:
        df = read_table(location, timeout=timeout)
    except (requests.RequestException, OSError, ValueError) as e:
        raise DataLoadError(source, e) from e
    items = parse(df)
    logger.info("Loaded %d %s from %s", len(items), source, location)
    return items


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------
def load_local_bodies(settings: Settings) -> List[LocalBody]:
    return _load_registry_table("local bodies", settings.csv_path(LOCAL_BODIES_CSV),
                                local_bodies_from_frame, settings.http_timeout)


def load_wards(settings: Settings) -> List[Ward]:
    return _load_registry_table("wards", settings.csv_path(WARDS_CSV),
                                wards_from_frame, settings.http_timeout)


def load_polling_stations(settings: Settings) -> List[PollingStation]:
    return _load_registry_table("polling stations", settings.csv_path(POLLING_STATIONS_CSV),
                                stations_from_frame, settings.http_timeout)


def load_party_groups(settings: Settings) -> PartyGroups:
    location = settings.csv_path(PARTY_GROUPS_CSV)
    try:
        groups = PartyGroups.from_frame(read_table(location, timeout=settings.http_timeout))
    except (requests.RequestException, OSError, ValueError) as e:
        logger.warning("Failed to load party groups from %s, defaulting to empty table: %s", location, e)
        return PartyGroups.empty()
    logger.info("Loaded %d party groups", len(groups))
    return groups


def load_trend_results(settings: Settings, cache: QueryCache = None) -> Dict[str, LocalBodyResult]:
    """Aggregated trends keyed by local-body code; {} when the feed is unavailable."""
    def load():
        groups = load_party_groups(settings)
        try:
            df = read_table(settings.trends_url, timeout=settings.http_timeout)
        except (requests.RequestException, OSError, ValueError) as e:
            logger.warning("Failed to fetch trend results from %s: %s", settings.trends_url, e)
            return {}
        results = aggregate(rows_from_frame(df), groups)
        logger.info("Aggregated trends for %d local bodies", len(results))
        return results
    return _cached(cache, "trendresults", (), load)


@dataclass
class Registry:
    local_bodies: List[LocalBody] = field(default_factory=list)
    wards: List[Ward] = field(default_factory=list)
    polling_stations: List[PollingStation] = field(default_factory=list)


def load_registry(settings: Settings, cache: QueryCache = None) -> Registry:
    """Fetch the three registry tables concurrently; the first failure is re-raised."""
    def load():
        with ThreadPoolExecutor(max_workers=3) as ex:
            lbs = ex.submit(load_local_bodies, settings)
            wards = ex.submit(load_wards, settings)
            stations = ex.submit(load_polling_stations, settings)
            # result() waits for each; the pool waits for all before exiting
            return Registry(lbs.result(), wards.result(), stations.result())
    return _cached(cache, "registry", (), load)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
def read_map(location: str, timeout: float = 30.0, layer: str = None) -> dict:
    """GeoJSON or TopoJSON tile as a FeatureCollection; remote tiles are fetched with requests."""
    if is_remote(location):
        try:
            source = io.BytesIO(read_text(location, timeout=timeout).encode("utf-8"))
        except requests.RequestException as e:
            raise MapDataError(f"Map data not found: {location}") from e
    elif os.path.isfile(location):
        source = location
    else:
        raise MapDataError(f"Map data not found: {location}")
    return read_feature_collection(source, layer=layer)


def state_map_location(settings: Settings, tab: str) -> str:
    if tab not in STATE_MAP_FILES:
        raise MapDataError(f"Unknown map tab: {tab}")
    return settings.topojson_path(STATE_MAP_FILES[tab])


def district_map_location(settings: Settings, district: str, tab: str) -> str:
    if tab not in STATE_MAP_FILES:
        raise MapDataError(f"Unknown map tab: {tab}")
    return settings.topojson_path("district_maps", f"{district}_{tab}.json")


def ward_map_location(settings: Settings, district: str, lb_code: str) -> str:
    return settings.geojson_path("districts", district, f"{lb_code}.json")


def outline_map_location(settings: Settings, lb: LocalBody) -> str:
    """Outline tile of one local body; the tile set uses its own district spelling."""
    return join_location(settings.data_root, "geojson", tile_district_name(lb.district),
                         lb.lb_type, f"{lb.name}.json")


def load_map(settings: Settings, location: str, cache: QueryCache = None) -> dict:
    return _cached(cache, "map", (location,),
                   lambda: read_map(location, timeout=settings.http_timeout))
