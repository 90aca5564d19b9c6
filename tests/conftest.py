import json

import pytest

from lsg_trends.config import Settings
from lsg_trends.models import CandidateRow
from lsg_trends.parties import PartyGroups

LOCAL_BODIES_CSV = """Local Body Code,Local Body Name,Local Body Type,District,Ward Count
G01001,Vellanad,Grama Panchayat,THIRUVANANTHAPURAM,3
M01001,Neyyattinkara,Municipality,thiruvanathapuram ,2
B01001,Nedumangad,Block Panchayat,Thiruvananthapuram,2
D01001,Thiruvananthapuram,District Panchayat,Thiruvananthapuram,1
G14001,Manjeshwar,Grama Panchayat,KASARGOD,2
,Broken,Grama Panchayat,Kasargod,9
"""

WARDS_CSV = """Ward Code,Ward Name,Local Body Code,Total,Males,Females,Others
G01001001,Kallar,G01001,1000,480,519,1
G01001002,Ponnampi,G01001,900,450,450,0
G01001003,Vellanad,G01001,1100,500,600,0
M01001001,Town,M01001,2000,1000,1000,0
M01001002,Market,M01001,1500,700,800,0
B01001001,Block ward,B01001,5000,2500,2500,0
G14001001,Hosabettu,G14001,800,400,400,0
,Orphan,G14001,100,50,50,0
"""

POLLING_STATIONS_CSV = """PS No,PS Name,Ward Code,Local Body Code
1,LPS Kallar,G01001001,G01001
2,UPS Ponnampi,G01001002,G01001
3,Town Hall,M01001001,M01001
4,Block office,B01001001,B01001
5,GHS Hosabettu,G14001001,G14001
6,No body,,
"""

PARTY_GROUPS_CSV = """Party,Party Group
CPI(M),LDF
INC,UDF
bjp ,nda
IUML,UDF
SDPI,OTH
,LDF
"""

TRENDS_CSV = """District,LB_Code,LB_Name,Ward_No,Ward_Name,Candidate_Name,Party,Votes,Status
Thiruvananthapuram,G01001,Vellanad,1,Kallar,Anil,CPI(M),420,
Thiruvananthapuram,G01001,Vellanad,1,Kallar,Beena,INC,380,
Thiruvananthapuram,G01001,Vellanad,2,Ponnampi,Chandran,BJP,300,
Thiruvananthapuram,G01001,Vellanad,2,Ponnampi,Deepa,INC,310,
Thiruvananthapuram,G01001,Vellanad,3,Vellanad,Eldho,CPI(M),0,Leading
Thiruvananthapuram,G01001,Vellanad,3,Vellanad,Fathima,IUML,0,
Kasaragod,G14001,Manjeshwar,1,Hosabettu,Gopal,SDPI,"1,204",
,,,1,Nowhere,Ghost,INC,999,
"""


def square(x, y):
    return {"type": "Polygon", "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]]}


STATE_DISTRICTS = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"LSG_code": "G01001", "LSGI_NAME": "Vellanad",
                                           "District": "THIRUVANANTHAPURAM"}, "geometry": square(0, 0)},
        {"type": "Feature", "properties": {"SEC_Kerala_code": "G14001", "LSG_code": "X1",
                                           "English Label": "Manjeshwar", "DISTRICT": "kasargod"},
         "geometry": square(1, 0)},
        {"type": "Feature", "properties": {"LGD_Code": "M01001"}, "geometry": square(2, 0)},
        {"type": "Feature", "properties": {"LSGD": "Nowhere"}, "geometry": square(3, 0)},
    ],
}

# one quantized square, delta-encoded
STATE_GRAMA_TOPOLOGY = {
    "type": "Topology",
    "transform": {"scale": [0.5, 2], "translate": [10, 20]},
    "objects": {
        "grama": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "arcs": [[0]], "properties": {"LSG_code": "G01001"}},
            ],
        }
    },
    "arcs": [[[0, 0], [1, 0], [0, 1], [-1, 0], [0, -1]]],
}

WARD_MAP = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"Ward_No": 1}, "geometry": square(0, 0)},
        {"type": "Feature", "properties": {"ward_no": "3"}, "geometry": square(1, 0)},
        {"type": "Feature", "properties": {"WARD_NO": "9"}, "geometry": square(2, 0)},
    ],
}


@pytest.fixture
def party_groups():
    return PartyGroups({"CPI(M)": "LDF", "INC": "UDF", "BJP": "NDA", "IUML": "UDF", "SDPI": "OTH"})


@pytest.fixture
def make_row():
    def _make(lb_code="G01001", ward_no="1", candidate="A", party="INC", votes=0, status="", **kw):
        return CandidateRow(lb_code=lb_code, ward_no=ward_no, candidate=candidate,
                            party=party, votes=votes, status=status, **kw)
    return _make


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def data_root(tmp_path):
    root = tmp_path / "data"
    _write(root / "csv" / "local_bodies.csv", LOCAL_BODIES_CSV)
    _write(root / "csv" / "wards.csv", WARDS_CSV)
    _write(root / "csv" / "polling_stations.csv", POLLING_STATIONS_CSV)
    _write(root / "csv" / "party_and_group.csv", PARTY_GROUPS_CSV)
    _write(root / "trends.csv", TRENDS_CSV)
    kerala = root / "topojson" / "Kerala"
    _write(kerala / "districts.json", json.dumps(STATE_DISTRICTS))
    _write(kerala / "grama-panchayats.json", json.dumps(STATE_GRAMA_TOPOLOGY))
    _write(kerala / "district_maps" / "Thiruvananthapuram_grama.json", json.dumps(STATE_DISTRICTS))
    _write(root / "geojson" / "Kerala" / "districts" / "Thiruvananthapuram" / "G01001.json",
           json.dumps(WARD_MAP))
    return root


@pytest.fixture
def settings(data_root):
    return Settings(data_root=str(data_root), trends_url=str(data_root / "trends.csv"))


@pytest.fixture
def registry(settings):
    from lsg_trends.sources import load_registry
    return load_registry(settings)


@pytest.fixture
def trends(settings):
    from lsg_trends.sources import load_trend_results
    return load_trend_results(settings)
