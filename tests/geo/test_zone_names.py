import json

import pytest

from geo import zone_of
from geo.zone_names import ZoneNameLookup
from tests.factories import ORIGIN

MANSOURA_AREAS = {
    "Qanat Al Suez",
    "Mohafza",
    "Toreil",
    "Olongeel",
    "Gedila",
    "Mashaya Tayeba",
    "Mashayah Al Sherera",
    "Hay El Gamaa",
    "Abdelsalam Aref",
    "Geish Street",
}


@pytest.fixture
def lookup(zones_path):
    return ZoneNameLookup(zones_path)


@pytest.mark.unit
class TestZoneNameLookup:
    def test_loads_bundled_areas(self, lookup):
        assert lookup.area_count == 10

    def test_name_at_point(self, lookup):
        assert lookup.name_at(*ORIGIN) == "Mohafza"

    def test_name_at_outside_every_area(self, lookup):
        assert lookup.name_at(30.0444, 31.2357) is None

    def test_name_of_cell(self, lookup):
        assert lookup.name_of(zone_of(*ORIGIN)) in MANSOURA_AREAS

    def test_name_of_cell_is_cached(self, lookup):
        zone = zone_of(*ORIGIN)
        first = lookup.name_of(zone)

        assert lookup.name_of(zone) == first
        assert lookup._cell_name.cache_info().hits == 1

    def test_cell_cache_is_bounded(self, zones_path):
        lookup = ZoneNameLookup(zones_path, cache_size=2)
        cells = [zone_of(ORIGIN[0] + i * 0.05, ORIGIN[1]) for i in range(5)]

        for cell in cells:
            lookup.name_of(cell)

        info = lookup._cell_name.cache_info()
        assert info.maxsize == 2
        assert info.currsize == 2
        assert info.misses == 5

    def test_caches_are_per_instance(self, lookup, zones_path):
        other = ZoneNameLookup(zones_path)
        lookup.name_of(zone_of(*ORIGIN))

        assert other._cell_name.cache_info().currsize == 0

    def test_name_of_invalid_or_missing_cell(self, lookup):
        assert lookup.name_of(None) is None
        assert lookup.name_of("not-a-cell") is None

    def test_skips_malformed_features(self, tmp_path):
        path = tmp_path / "areas.geojson"
        path.write_text(
            json.dumps(
                {
                    "type": "FeatureCollection",
                    "features": [
                        {"properties": {"name": "No id"}, "geometry": {"type": "Polygon"}},
                        {
                            "properties": {"zone_id": "line", "name": "Line"},
                            "geometry": {"type": "LineString", "coordinates": []},
                        },
                        {
                            "properties": {"zone_key": "square", "name": "Square"},
                            "geometry": {
                                "type": "Polygon",
                                "coordinates": [[[31.0, 30.0], [31.1, 30.0], [31.1, 30.1], [31.0, 30.1], [31.0, 30.0]]],
                            },
                        },
                    ],
                }
            )
        )

        lookup = ZoneNameLookup(path)

        assert lookup.area_count == 1
        assert lookup.name_at(30.05, 31.05) == "Square"
