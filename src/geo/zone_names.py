"""Read-only display names for hex zones, loaded from named GeoJSON polygons."""

import json
import logging
from functools import lru_cache
from pathlib import Path

import h3
from pydantic import BaseModel
from shapely.geometry import Point, Polygon

logger = logging.getLogger(__name__)

CELL_CACHE_SIZE = 4096


class NamedArea(BaseModel):
    area_id: str
    name: str
    geometry: list[tuple[float, float]]


class ZoneNameLookup:
    """Resolves hex zone ids (and raw points) to human-readable area names.

    A cell takes the name of the area it overlaps most. The lookup never
    mutates the loaded areas. Per-cell answers are kept in a bounded LRU cache.
    """

    def __init__(self, geojson_path: Path | str, cache_size: int = CELL_CACHE_SIZE):
        self.geojson_path = Path(geojson_path)
        self._areas: dict[str, NamedArea] = {}
        self._polygons: dict[str, Polygon] = {}
        self._cell_name = lru_cache(maxsize=cache_size)(self._best_overlap_name)
        self._load_areas()

    def _load_areas(self) -> None:
        with open(self.geojson_path) as f:
            geojson = json.load(f)

        if geojson.get("type") != "FeatureCollection":
            logger.warning(f"Expected FeatureCollection, got {geojson.get('type')}")
            return

        for feature in geojson.get("features", []):
            area = self._parse_feature(feature)
            if area:
                self._areas[area.area_id] = area
                self._polygons[area.area_id] = Polygon(area.geometry)

        logger.info(f"Loaded {len(self._areas)} named areas from {self.geojson_path}")

    @staticmethod
    def _parse_feature(feature: dict) -> NamedArea | None:
        properties = feature.get("properties", {})
        geometry = feature.get("geometry", {})

        area_id = properties.get("zone_id") or properties.get("zone_key")
        if not area_id:
            logger.warning("Skipping feature with missing zone_id")
            return None

        if geometry.get("type") != "Polygon":
            logger.warning(
                f"Skipping area {area_id}: unsupported geometry type {geometry.get('type')}"
            )
            return None

        coordinates = geometry.get("coordinates", [[]])
        if not coordinates or len(coordinates[0]) < 3:
            logger.warning(f"Skipping area {area_id}: polygon needs at least 3 points")
            return None

        return NamedArea(
            area_id=area_id,
            name=properties.get("name", area_id),
            geometry=[(lon, lat) for lon, lat in coordinates[0]],
        )

    @property
    def area_count(self) -> int:
        return len(self._areas)

    def name_at(self, lat: float, lng: float) -> str | None:
        """Name of the area containing the point, if any."""
        point = Point(lng, lat)
        for area_id, polygon in self._polygons.items():
            if polygon.contains(point):
                return self._areas[area_id].name
        return None

    def name_of(self, zone_id: str | None) -> str | None:
        """Name of the area that overlaps the given hex cell the most."""
        if not zone_id:
            return None
        return self._cell_name(zone_id)

    def _best_overlap_name(self, zone_id: str) -> str | None:
        try:
            boundary = h3.cell_to_boundary(zone_id)
        except ValueError:
            return None

        # h3 returns (lat, lng); shapely expects (x, y) = (lng, lat)
        cell = Polygon([(lng, lat) for lat, lng in boundary])
        best_name: str | None = None
        best_overlap = 0.0
        for area_id, polygon in self._polygons.items():
            overlap = cell.intersection(polygon).area
            if overlap > best_overlap:
                best_overlap = overlap
                best_name = self._areas[area_id].name
        return best_name
