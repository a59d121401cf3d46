"""CityFix configuration — WFS endpoint, map view, and wire constraints."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


@dataclass(frozen=True)
class WFSConfig:
    """Remote feature service (GeoServer WFS / WFS-T) settings."""

    wfs_url: str = "http://localhost:8080/geoserver/cityfix/wfs"
    workspace: str = "cityfix"
    type_name: str = "Münster-Issues"
    geometry_field: str = "the_geom"
    default_namespace: str = "http://cityfix"
    srs_name: str = "EPSG:4326"
    timeout_seconds: float = 15.0

    @property
    def qualified_type_name(self) -> str:
        """Type name as used in request parameters (``workspace:type``)."""
        return f"{self.workspace}:{self.type_name}"


@dataclass(frozen=True)
class MapConfig:
    """Initial map view and background layers."""

    center_lat: float = 51.962
    center_lon: float = 7.625
    zoom: int = 12
    basemap_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    basemap_attribution: str = "© OpenStreetMap contributors"
    wms_url: str = "https://www.stadt-muenster.de/ows/mapserv706/odalkisserv?"
    wms_layers: str = "stadtgebiet"
    fit_padding: float = 0.2


@dataclass(frozen=True)
class CityFixConfig:
    """Top-level CityFix configuration."""

    wfs: WFSConfig = field(default_factory=WFSConfig)
    map: MapConfig = field(default_factory=MapConfig)

    # Field length of the service-side description column.
    description_max_length: int = 254


DEFAULT_CONFIG = CityFixConfig()


def load_config() -> CityFixConfig:
    """Build a config from ``CITYFIX_*`` environment variables (and ``.env``).

    Unset variables keep their defaults.
    """
    load_dotenv()
    defaults = WFSConfig()
    wfs = WFSConfig(
        wfs_url=os.getenv("CITYFIX_WFS_URL", defaults.wfs_url),
        workspace=os.getenv("CITYFIX_WORKSPACE", defaults.workspace),
        type_name=os.getenv("CITYFIX_TYPE_NAME", defaults.type_name),
        geometry_field=os.getenv("CITYFIX_GEOMETRY_FIELD", defaults.geometry_field),
        default_namespace=os.getenv(
            "CITYFIX_DEFAULT_NAMESPACE", defaults.default_namespace
        ),
        timeout_seconds=float(
            os.getenv("CITYFIX_TIMEOUT", str(defaults.timeout_seconds))
        ),
    )
    return CityFixConfig(wfs=wfs)
