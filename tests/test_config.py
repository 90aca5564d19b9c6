from lsg_trends.config import DEFAULT_TRENDS_URL, Settings, is_remote, join_location, load_settings

ENV_VARS = ("LSG_DATA_ROOT", "LSG_TRENDS_URL", "LSG_HTTP_TIMEOUT", "LOG_LEVEL", "API_HOST", "API_PORT")


def test_defaults(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.data_root == "public/data"
    assert settings.trends_url == DEFAULT_TRENDS_URL
    assert settings.http_timeout == 30.0
    assert settings.api_port == 5000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LSG_DATA_ROOT", "/srv/data")
    monkeypatch.setenv("LSG_HTTP_TIMEOUT", "7.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("API_PORT", "8080")
    settings = load_settings()
    assert settings.data_root == "/srv/data"
    assert settings.http_timeout == 7.5
    assert settings.log_level == "DEBUG"
    assert settings.api_port == 8080


def test_bad_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("LSG_HTTP_TIMEOUT", "soon")
    monkeypatch.setenv("API_PORT", "http")
    settings = load_settings()
    assert settings.http_timeout == 30.0
    assert settings.api_port == 5000


def test_remote_locations():
    assert is_remote("https://example.org/data")
    assert not is_remote("public/data")
    assert join_location("https://example.org/data/", "csv", "/wards.csv") == \
        "https://example.org/data/csv/wards.csv"
    settings = Settings(data_root="https://example.org/data")
    assert settings.topojson_path("districts.json") == "https://example.org/data/topojson/Kerala/districts.json"
