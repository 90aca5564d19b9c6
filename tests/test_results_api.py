import os

import pytest

import results_api
from lsg_trends.errors import NavigationError
from lsg_trends.sources import QueryCache


@pytest.fixture
def client(settings, monkeypatch):
    monkeypatch.setattr(results_api, "settings", settings)
    monkeypatch.setattr(results_api, "cache", QueryCache())
    results_api.app.config["TESTING"] = True
    with results_api.app.test_client() as client:
        yield client


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def test_summary(client):
    data = client.get("/api/summary").get_json()
    assert data["grama_panchayats"] == 2
    assert data["voters"] == 7300
    assert data["polling_stations"] == 4


def test_districts(client):
    data = client.get("/api/districts?kpi=district_panchayats").get_json()
    assert data["kpi"] == "district_panchayats"
    assert [r["district"] for r in data["rows"]] == ["Thiruvananthapuram"]
    assert len(client.get("/api/districts").get_json()["rows"]) == 2


def test_districts_rejects_unknown_kpi(client):
    resp = client.get("/api/districts?kpi=mayors")
    assert resp.status_code == 400
    assert "Unknown KPI" in resp.get_json()["error"]


def test_local_body_search_and_filter(client):
    found = client.get("/api/local-bodies?q=vella").get_json()["local_bodies"]
    assert [lb["lb_code"] for lb in found] == ["G01001"]
    assert found[0]["leading_front"] == "Hung"

    kasaragod = client.get("/api/local-bodies?district=Kasaragod").get_json()["local_bodies"]
    assert [lb["lb_code"] for lb in kasaragod] == ["G14001"]
    assert kasaragod[0]["leading_front"] == "IND"

    municipalities = client.get("/api/local-bodies?type=Municipalities").get_json()["local_bodies"]
    assert [lb["leading_front"] for lb in municipalities] == ["N/A"]


def test_local_body_detail(client):
    data = client.get("/api/local-bodies/G01001").get_json()
    assert data["local_body"]["name"] == "Vellanad"
    assert data["stats"]["voters"] == 3000
    assert client.get("/api/local-bodies/X00000").status_code == 404


def test_trends(client):
    data = client.get("/api/trends").get_json()
    assert data["count"] == 2
    by_code = {r["lb_code"]: r for r in data["results"]}
    assert by_code["G01001"]["seats"] == {"LDF": 1, "UDF": 1, "NDA": 0, "IND": 0}
    assert by_code["G14001"]["district"] == "Kasaragod"
    assert by_code["G14001"]["candidate_count"] == 1
    assert by_code["G14001"]["vote_share"]["IND"] == 100.0


def test_trend_detail(client):
    data = client.get("/api/trends/G01001").get_json()
    result = data["result"]
    assert result["wards_declared"] == 2
    assert result["wards"]["1"]["winner"]["name"] == "Anil"
    assert result["wards"]["3"]["winner"] is None
    assert result["wards"]["3"]["leading_hint"]["name"] == "Eldho"


def test_trend_detail_before_results(client):
    resp = client.get("/api/trends/M01001")
    assert resp.status_code == 200
    assert resp.get_json() == {"lb_code": "M01001", "result": None}


def test_state_map_is_colored(client):
    data = client.get("/api/maps/state/district").get_json()
    fills = {f["properties"]["_code"]: f["properties"]["_fillColor"] for f in data["features"]}
    assert fills["G01001"] == "#64748b"
    assert fills["G14001"] == "#94a3b8"


def test_state_topology_map(client):
    data = client.get("/api/maps/state/grama").get_json()
    assert data["type"] == "FeatureCollection"
    assert data["features"][0]["properties"]["_fillColor"] == "#64748b"


def test_missing_map_is_404(client):
    assert client.get("/api/maps/state/block").status_code == 404
    assert client.get("/api/maps/state/ward").status_code == 404
    assert client.get("/api/maps/district/Kollam/grama").status_code == 404


def test_district_map(client):
    resp = client.get("/api/maps/district/Thiruvananthapuram/grama")
    assert resp.status_code == 200
    assert len(resp.get_json()["features"]) == 4


def test_local_body_ward_map(client):
    data = client.get("/api/maps/local-body/G01001").get_json()
    fills = [f["properties"]["_fillColor"] for f in data["features"]]
    assert fills == ["#ef4444", "#fca5a5", "#e2e8f0"]
    assert client.get("/api/maps/local-body/X00000").status_code == 404


def test_registry_failure_is_503(client, data_root):
    os.remove(data_root / "csv" / "local_bodies.csv")
    resp = client.get("/api/summary")
    assert resp.status_code == 503
    assert resp.get_json()["source"] == "local bodies"


def test_refresh_reloads(client, data_root):
    assert client.get("/api/summary").status_code == 200
    os.remove(data_root / "csv" / "local_bodies.csv")
    assert client.get("/api/summary").status_code == 200
    assert client.get("/api/summary?refresh=1").status_code == 503


def test_unexpected_trends_error_is_json_500(client, monkeypatch):
    def broken(settings, cache):
        raise NavigationError("Already at the state overview")
    monkeypatch.setattr(results_api, "load_trend_results", broken)
    resp = client.get("/api/trends")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Already at the state overview", "type": "NavigationError"}
