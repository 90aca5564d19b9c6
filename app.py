import logging

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from lsg_trends import registry as reg
from lsg_trends.config import load_settings
from lsg_trends.errors import DataLoadError, MapDataError
from lsg_trends.geometry import (
    DEFAULT_COLOR,
    FILL_PROPERTY,
    color_for_front,
    feature_by_code,
    feature_code,
    feature_name,
    feature_selection,
    style_features,
    style_ward_features,
)
from lsg_trends.models import FRONTS, NOT_AVAILABLE
from lsg_trends.navigation import DISTRICT, LOCAL_BODY, Navigator
from lsg_trends.sources import (
    STATE_MAP_FILES,
    QueryCache,
    Registry,
    district_map_location,
    load_map,
    load_registry,
    load_trend_results,
    outline_map_location,
    state_map_location,
    ward_map_location,
)

# -------------------------------
# Page configuration & CSS
# -------------------------------
st.set_page_config(
    page_title="Local Body Election Trends",
    page_icon="🗳️",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main-header {
        font-size: 2.4rem;
        font-weight: bold;
        text-align: center;
        color: #1f77b4;
        margin-bottom: 1rem;
    }
</style>
""", unsafe_allow_html=True)

settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

KPI_LABELS = {
    "corporations": "Corporations",
    "municipalities": "Municipalities",
    "grama_panchayats": "Grama Panchayats",
    "block_panchayats": "Block Panchayats",
    "district_panchayats": "District Panchayats",
    "voters": "Total Voters",
    "polling_stations": "Polling Stations",
    "total_wards": "Total Wards",
}
NO_DATA = "No data"


def _session():
    if "cache" not in st.session_state:
        st.session_state.cache = QueryCache()
    if "nav" not in st.session_state:
        st.session_state.nav = Navigator()
    return st.session_state.cache, st.session_state.nav


# -------------------------------
# UI pieces
# -------------------------------
def display_kpis(counts):
    items = list(KPI_LABELS.items())
    for row in (items[:4], items[4:]):
        cols = st.columns(len(row))
        for col, (kpi, label) in zip(cols, row):
            col.metric(label=label, value=f"{counts.get(kpi, 0):,}")


def display_district_table(registry: Registry):
    kpi = st.selectbox("Break down by", options=[None] + list(KPI_LABELS),
                       format_func=lambda k: "Local Bodies" if k is None else KPI_LABELS[k])
    rows = reg.district_table(registry.local_bodies, registry.wards, registry.polling_stations, kpi)
    df = pd.DataFrame(rows, columns=["district", "kpi_count", "total_wards", "voters", "stations"])
    df = df.rename(columns={
        "district": "District",
        "kpi_count": KPI_LABELS.get(kpi, "Local Bodies"),
        "total_wards": "Total Wards",
        "voters": "Voters",
        "stations": "Polling Stations",
    })
    st.dataframe(df, use_container_width=True, hide_index=True)


def _front_frame(collection, results):
    rows = []
    for feature in collection.get("features", []):
        code = feature_code(feature)
        result = results.get(code) if code else None
        rows.append({
            "code": code,
            "name": feature_name(feature),
            "front": result.leading_front if result else NO_DATA,
            "declared": result.wards_declared if result else 0,
        })
    return pd.DataFrame(rows, columns=["code", "name", "front", "declared"])


def choropleth(collection, df, location_col, featureidkey, color_col, color_map, hover):
    fig = px.choropleth(
        df,
        geojson=collection,
        locations=location_col,
        featureidkey=featureidkey,
        color=color_col,
        color_discrete_map=color_map,
        hover_name=hover,
        custom_data=[location_col],
    )
    fig.update_geos(fitbounds="locations", visible=False)
    fig.update_layout(height=600, margin=dict(l=0, r=0, t=0, b=0),
                      plot_bgcolor='rgba(0,0,0,0)', paper_bgcolor='rgba(0,0,0,0)')
    return fig


def clear_map_selections():
    """Drop stale map clicks so a revisited view does not navigate again."""
    for key in [k for k in st.session_state if str(k).startswith("map_")]:
        del st.session_state[key]


def clicked_code(event):
    """Feature code of the first point picked on a map chart, or None."""
    if not event or "selection" not in event:
        return None
    for point in event["selection"].get("points", []):
        code = point.get("location") or (point.get("customdata") or [None])[0]
        if code:
            return code
    return None


def display_front_map(collection, results, key):
    """Choropleth by leading front; returns the feature the user clicked, if any."""
    styled = style_features(collection, results)
    df = _front_frame(styled, results).dropna(subset=["code"])
    if df.empty:
        st.info("No local bodies in this map carry an administrative code.")
        return None
    color_map = {front: color_for_front(front) for front in df["front"].unique()}
    fig = choropleth(styled, df, "code", "properties._code", "front", color_map, "name")
    fig.update_layout(clickmode="event+select")
    event = st.plotly_chart(fig, use_container_width=True, key=key,
                            on_select="rerun", selection_mode="points")
    return feature_by_code(styled, clicked_code(event))


def display_seat_bar(result):
    fig = go.Figure(data=[
        go.Bar(x=list(FRONTS), y=[result.seats[f] for f in FRONTS],
               marker_color=[color_for_front(f) for f in FRONTS],
               text=[result.seats[f] for f in FRONTS], textposition='auto')
    ])
    fig.update_layout(title="Seats won", height=300, showlegend=False,
                      plot_bgcolor='rgba(0,0,0,0)', paper_bgcolor='rgba(0,0,0,0)')
    st.plotly_chart(fig, use_container_width=True)


def display_ward_table(result):
    rows = []
    for ward_no, ward in result.wards.items():
        top = ward.top
        rows.append({
            "Ward": ward_no,
            "Ward Name": ward.ward_name,
            "Winner": ward.winner.name if ward.winner else "",
            "Front": ward.winner.front if ward.winner else "",
            "Votes": ward.winner.votes if ward.winner else 0,
            "Leading": ward.leading_hint.name if ward.leading_hint else "",
            "Top Candidate": top.name if top else "",
        })
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


# -------------------------------
# Map views
# -------------------------------
def overview_view(nav, registry, results, cache):
    tab = st.radio("Map", options=list(STATE_MAP_FILES), horizontal=True,
                   format_func=str.capitalize)
    try:
        collection = load_map(settings, state_map_location(settings, tab), cache)
    except MapDataError as e:
        st.error(str(e))
        collection = None
    if collection is not None:
        selection = feature_selection(display_front_map(collection, results, key=f"map_state_{tab}"))
        if selection:
            code, district = selection
            nav.select_district(district, code)
            clear_map_selections()
            st.rerun()

    # fallback for maps whose features carry no district
    districts = sorted({lb.district for lb in registry.local_bodies})
    pick = st.selectbox("District", options=[""] + districts)
    if pick and st.button("Open district"):
        nav.select_district(pick)
        clear_map_selections()
        st.rerun()


def district_view(nav, registry, results, cache):
    st.subheader(f"{nav.district} Local Bodies")
    tab = st.radio("Tier", options=list(reg.TAB_TYPES), horizontal=True,
                   format_func=str.capitalize)
    lbs = [lb for lb in reg.tab_local_bodies(registry.local_bodies, tab) if lb.district == nav.district]
    c1, c2 = st.columns(2)
    c1.metric("Local Bodies", len(lbs))
    c2.metric("Total Wards", sum(lb.total_wards for lb in lbs))

    index = reg.index_by_code(registry.local_bodies)
    try:
        collection = load_map(settings, district_map_location(settings, nav.district, tab), cache)
    except MapDataError:
        st.error(f"Failed to load {tab} map for {nav.district}")
        collection = None
    if collection is not None:
        clicked = display_front_map(collection, results, key=f"map_district_{tab}")
        if clicked is not None and nav.select_local_body(feature_code(clicked), index):
            clear_map_selections()
            st.rerun()

    summaries = reg.local_body_summaries(lbs, results)
    st.dataframe(pd.DataFrame(summaries).drop(columns=["seats"], errors="ignore"),
                 use_container_width=True, hide_index=True)
    options = {f"{lb.name} ({lb.lb_type})": lb.lb_code for lb in lbs}
    pick = st.selectbox("Local body", options=[""] + list(options))
    if pick and st.button("Open local body"):
        if nav.select_local_body(options[pick], index):
            clear_map_selections()
            st.rerun()


def display_outline(lb, cache):
    """Plain boundary of a local body whose ward map is not published."""
    try:
        collection = load_map(settings, outline_map_location(settings, lb), cache)
    except MapDataError:
        st.error(f"Could not load map for {lb.name}")
        return
    collection = dict(collection, features=[
        dict(f, properties=dict(f.get("properties") or {}, _name=lb.name))
        for f in collection.get("features", [])
    ])
    df = pd.DataFrame([{"name": lb.name}])
    fig = choropleth(collection, df, "name", "properties._name", "name", {lb.name: DEFAULT_COLOR}, "name")
    fig.update_layout(showlegend=False)
    st.plotly_chart(fig, use_container_width=True)


def local_body_view(nav, registry, results, cache):
    lb = nav.local_body
    st.subheader(f"{lb.name} · {lb.lb_type} · {lb.district}")
    stats = reg.local_body_stats(lb, registry.local_bodies, registry.wards, registry.polling_stations)
    result = results.get(lb.lb_code)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Wards", lb.total_wards)
    c2.metric("Wards Declared", result.wards_declared if result else 0)
    c3.metric("Leading", result.leading_front if result else NOT_AVAILABLE)
    c4.metric("Voters", f"{stats['voters']:,}")

    try:
        collection = load_map(settings, ward_map_location(settings, lb.district, lb.lb_code), cache)
        styled = style_ward_features(collection, result)
        df = pd.DataFrame([
            {"ward": f["properties"].get("_wardNo"), "color": f["properties"][FILL_PROPERTY]}
            for f in styled["features"]
        ], columns=["ward", "color"]).dropna(subset=["ward"])
        if not df.empty:
            color_map = {c: c for c in df["color"].unique()}
            fig = choropleth(styled, df, "ward", "properties._wardNo", "color", color_map, "ward")
            fig.update_layout(showlegend=False)
            st.plotly_chart(fig, use_container_width=True)
    except MapDataError:
        display_outline(lb, cache)

    if result is None:
        st.info("No results available")
        return
    display_seat_bar(result)
    display_ward_table(result)


def main():
    st.markdown('<h1 class="main-header">🗳️ Local Body Election Trends</h1>', unsafe_allow_html=True)
    cache, nav = _session()

    if st.sidebar.button("🔄 Refresh data"):
        cache.invalidate()
    if st.sidebar.button("🏠 Home"):
        nav.home()
        clear_map_selections()

    with st.spinner("Loading registry..."):
        try:
            registry = load_registry(settings, cache)
        except DataLoadError as e:
            logger.error("Error loading data: %s", e)
            st.error(f"Could not load registry data: {e}")
            registry = Registry()
    with st.spinner("Loading trends..."):
        trends = load_trend_results(settings, cache)
    results = reg.join_results(registry.local_bodies, trends)

    data_tab, map_tab = st.tabs(["📊 Data", "🗺️ Map"])
    with data_tab:
        display_kpis(reg.dashboard_counts(registry.local_bodies, registry.wards, registry.polling_stations))
        term = st.text_input("Search local bodies", placeholder="e.g. Kottayam")
        if term:
            hits = reg.search_local_bodies(registry.local_bodies, term)
            if hits:
                st.dataframe(pd.DataFrame(reg.local_body_summaries(hits, results)).drop(columns=["seats"]),
                             use_container_width=True, hide_index=True)
            else:
                st.caption("No results found")
        display_district_table(registry)

    with map_tab:
        if nav.state != DISTRICT and nav.state != LOCAL_BODY:
            overview_view(nav, registry, trends, cache)
            return
        if st.button("← Back"):
            nav.back()
            clear_map_selections()
            st.rerun()
        if nav.state == DISTRICT:
            district_view(nav, registry, trends, cache)
        else:
            local_body_view(nav, registry, trends, cache)


if __name__ == "__main__":
    main()
