import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_TRENDS_URL = (
    "https://raw.githubusercontent.com/opendatakerala/LSGD2025-Results-Data/"
    "refs/heads/main/trend_detailed_results_2025.csv"
)


@dataclass(frozen=True)
class Settings:
    data_root: str = "public/data"
    trends_url: str = DEFAULT_TRENDS_URL
    http_timeout: float = 30.0
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    def csv_path(self, name):
        return join_location(self.data_root, "csv", name)

    def topojson_path(self, *parts):
        return join_location(self.data_root, "topojson", "Kerala", *parts)

    def geojson_path(self, *parts):
        return join_location(self.data_root, "geojson", "Kerala", *parts)


def is_remote(location: str) -> bool:
    return str(location).lower().startswith(("http://", "https://"))


def join_location(root, *parts):
    """Join path parts onto a local directory or an http(s) base URL."""
    if is_remote(root):
        return "/".join([str(root).rstrip("/")] + [str(p).strip("/") for p in parts])
    return os.path.join(root, *parts)


def _float_env(name, default):
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _int_env(name, default):
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def load_settings() -> Settings:
    """Build Settings from the environment (a local .env file is honoured)."""
    load_dotenv()
    return Settings(
        data_root=os.environ.get("LSG_DATA_ROOT", Settings.data_root),
        trends_url=os.environ.get("LSG_TRENDS_URL", DEFAULT_TRENDS_URL),
        http_timeout=_float_env("LSG_HTTP_TIMEOUT", Settings.http_timeout),
        log_level=os.environ.get("LOG_LEVEL", Settings.log_level).upper(),
        api_host=os.environ.get("API_HOST", Settings.api_host),
        api_port=_int_env("API_PORT", Settings.api_port),
    )
