import argparse
import sys

from lsg_trends.config import load_settings
from lsg_trends.errors import DataLoadError, MapDataError
from lsg_trends.geometry import CODE_KEYS, feature_code, feature_name, unmatched_codes
from lsg_trends.sources import STATE_MAP_FILES, load_local_bodies, read_map, state_map_location


def main(argv=None):
    parser = argparse.ArgumentParser(description="Report map features whose code is not in the local body registry")
    parser.add_argument("files", nargs="*", help="GeoJSON/TopoJSON files (default: the state map tiles)")
    args = parser.parse_args(argv)

    settings = load_settings()
    try:
        local_bodies = load_local_bodies(settings)
    except DataLoadError as e:
        print(f"Registry not loaded: {e}")
        return 1
    known = {lb.lb_code for lb in local_bodies}

    files = args.files or [state_map_location(settings, tab) for tab in STATE_MAP_FILES]
    problems = 0
    for path in files:
        print("=" * 80)
        print(f"CHECKING {path}")
        print("=" * 80)
        try:
            collection = read_map(path, timeout=settings.http_timeout)
        except MapDataError as e:
            print(f"  ✗ {e}")
            problems += 1
            continue

        missing, no_code = unmatched_codes(collection, known)
        print(f"  Total features: {len(collection.get('features', []))}")
        if no_code:
            print(f"  ⚠️ {no_code} features have none of {', '.join(CODE_KEYS)}")
        if missing:
            names = {feature_code(f): feature_name(f) for f in collection["features"]}
            print(f"  ⚠️ {len(missing)} codes not in registry:")
            for code in sorted(set(missing)):
                print(f"    - {code} {names.get(code, '')}")
        if not missing and not no_code:
            print("  ✓ every feature matches a registered local body")
        problems += len(missing) + no_code

    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
