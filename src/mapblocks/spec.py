from __future__ import annotations

from dataclasses import dataclass

import yaml

from .shapes import (
    DEFAULT_ASSET_PREFIX,
    Bounds,
    Marker,
    TileLayer,
    coerce_number,
    js_string,
    normalize_image_path,
    parse_bounds,
    parse_markers,
    parse_tile_list,
)

DEFAULT_HEIGHT = "500px"
DEFAULT_WIDTH = "100%"
DEFAULT_ZOOM = 5.0
DEFAULT_UNIT = "metric"
UNITS = ("metric", "imperial", "both")


@dataclass(frozen=True)
class MapSpec:
    id: str | None
    height: str = DEFAULT_HEIGHT
    width: str = DEFAULT_WIDTH
    lat: float | None = None
    lng: float | None = None
    bounds: Bounds | None = None
    min_zoom: float | None = None
    max_zoom: float | None = None
    default_zoom: float = DEFAULT_ZOOM
    zoom_delta: float | None = None
    unit: str = DEFAULT_UNIT
    scale: bool = True
    recenter: bool = False
    dark_mode: bool = False
    tile_server: list[TileLayer] | None = None
    overlay: list[TileLayer] | None = None
    images: str = DEFAULT_ASSET_PREFIX + "undefined"
    markers: list[Marker] | None = None

    def to_dict(self) -> dict:
        """camelCase record with absent fields left out, as JSON.stringify would."""
        fields = {
            "id": self.id,
            "height": self.height,
            "width": self.width,
            "lat": self.lat,
            "lng": self.lng,
            "bounds": [list(corner) for corner in self.bounds] if self.bounds else None,
            "minZoom": self.min_zoom,
            "maxZoom": self.max_zoom,
            "defaultZoom": self.default_zoom,
            "zoomDelta": self.zoom_delta,
            "unit": self.unit,
            "scale": self.scale,
            "recenter": self.recenter,
            "darkMode": self.dark_mode,
            "tileServer": [t.to_dict() for t in self.tile_server] if self.tile_server else None,
            "overlay": [t.to_dict() for t in self.overlay] if self.overlay else None,
            "images": self.images,
            "markers": [m.to_dict() for m in self.markers] if self.markers else None,
        }
        return {key: value for key, value in fields.items() if value is not None}


def load_block_payload(text: str, warnings: list[str] | None = None) -> dict:
    try:
        payload = yaml.safe_load(text or "")
    except yaml.YAMLError as exc:
        if warnings is not None:
            warnings.append(f"map block payload is not valid YAML, using defaults: {exc}")
        return {}
    except (ValueError, TypeError, RecursionError) as exc:
        # SafeConstructor raises these for values like an impossible date (2020-13-45).
        if warnings is not None:
            warnings.append(f"map block payload has an unreadable value, using defaults: {exc}")
        return {}
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        if warnings is not None:
            warnings.append(
                f"map block payload is a {type(payload).__name__}, not a mapping; using defaults"
            )
        return {}
    return payload


def _first_present(payload: dict, *keys):
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _dimension(value, default: str) -> str:
    if value is None:
        return default
    return js_string(value)


def _unit(value) -> str:
    token = str(value).strip().lower() if value is not None else ""
    if token in UNITS:
        return token
    return DEFAULT_UNIT


def build_map_spec(payload: dict, asset_prefix: str = DEFAULT_ASSET_PREFIX) -> MapSpec:
    raw_id = payload.get("id")
    default_zoom = coerce_number(payload.get("defaultZoom"))
    return MapSpec(
        id=None if raw_id is None else js_string(raw_id),
        height=_dimension(payload.get("height"), DEFAULT_HEIGHT),
        width=_dimension(payload.get("width"), DEFAULT_WIDTH),
        lat=coerce_number(payload.get("lat")),
        lng=coerce_number(_first_present(payload, "lng", "long")),
        bounds=parse_bounds(payload.get("bounds")),
        min_zoom=coerce_number(payload.get("minZoom")),
        max_zoom=coerce_number(payload.get("maxZoom")),
        default_zoom=DEFAULT_ZOOM if default_zoom is None else default_zoom,
        zoom_delta=coerce_number(payload.get("zoomDelta")),
        unit=_unit(payload.get("unit")),
        scale=payload.get("scale") is not False,
        recenter=bool(payload.get("recenter")),
        dark_mode=bool(payload.get("darkMode")),
        tile_server=parse_tile_list(payload.get("tileServer")) or parse_tile_list(payload.get("tiles")),
        overlay=parse_tile_list(payload.get("overlay")),
        images=normalize_image_path(payload, asset_prefix),
        markers=parse_markers(_first_present(payload, "marker", "markers")),
    )


def parse_map_block(
    text: str,
    asset_prefix: str = DEFAULT_ASSET_PREFIX,
    warnings: list[str] | None = None,
) -> MapSpec:
    return build_map_spec(load_block_payload(text, warnings), asset_prefix)
