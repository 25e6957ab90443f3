"""Interactive folium preview of Earth Engine images."""

from typing import Sequence

import ee
import folium

from denudmap.core.config import VisParams


def ee_tile_url(image: ee.Image, vis: VisParams) -> str:
    """Return an XYZ tile URL template rendering *image* with *vis*."""
    map_id = image.getMapId(vis.to_ee())
    return map_id["tile_fetcher"].url_format


def build_map(
    image: ee.Image,
    vis: VisParams | None = None,
    name: str = "Log Denudation Prediction",
    center: Sequence[float] = (20.0, 0.0),
    zoom: int = 2,
) -> folium.Map:
    """Return a folium Map with *image* added as an overlay layer."""
    vis = vis or VisParams()
    m = folium.Map(location=list(center), zoom_start=zoom, tiles="OpenStreetMap")
    folium.raster_layers.TileLayer(
        tiles=ee_tile_url(image, vis),
        attr="Google Earth Engine",
        name=name,
        overlay=True,
        control=True,
    ).add_to(m)
    folium.LayerControl().add_to(m)
    return m


def save_map(m: folium.Map, output_path: str) -> str:
    m.save(output_path)
    return output_path
