import pytest

import check_geojson_codes


@pytest.fixture(autouse=True)
def data_env(data_root, monkeypatch):
    monkeypatch.setenv("LSG_DATA_ROOT", str(data_root))


def test_reports_unmatched_codes(data_root, capsys):
    path = data_root / "topojson" / "Kerala" / "districts.json"
    assert check_geojson_codes.main([str(path)]) == 1
    out = capsys.readouterr().out
    assert "M01001" in out
    assert "1 features have none of" in out


def test_clean_map_passes(data_root, capsys):
    path = data_root / "topojson" / "Kerala" / "grama-panchayats.json"
    assert check_geojson_codes.main([str(path)]) == 0
    assert "every feature matches" in capsys.readouterr().out


def test_missing_file_is_a_problem(data_root):
    assert check_geojson_codes.main([str(data_root / "nope.json")]) == 1
