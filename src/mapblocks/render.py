"""Serialize a MapSpec into the container and script markup.

The numbers fed to ``L.map`` and ``L.imageOverlay`` go through
``ViewTransform``. Its defaults reproduce the placeholder arithmetic the
published pages were built with: lat/lng divided by 1000, zoom multiplied
by -1.5, and only the second bounds corner divided. They are knobs, not a
coordinate system.
"""

from __future__ import annotations

import base64
import html
import json
from dataclasses import dataclass

from .shapes import format_number, js_string
from .spec import MapSpec

CONTAINER_CLASS = "qz-leaflet"


@dataclass(frozen=True)
class ViewTransform:
    center_divisor: float = 1000.0
    zoom_factor: float = -1.5
    bounds_divisors: tuple[float, float] = (1.0, 1000.0)

    def center(self, spec: MapSpec) -> tuple[str, str]:
        return _scaled(spec.lat, self.center_divisor), _scaled(spec.lng, self.center_divisor)

    def zoom(self, spec: MapSpec) -> str:
        return format_number(spec.default_zoom * self.zoom_factor)

    def bounds(self, spec: MapSpec) -> str:
        corners = []
        for idx, divisor in enumerate(self.bounds_divisors):
            corner = spec.bounds[idx] if spec.bounds else None
            if corner is None:
                # Unscaled missing corner prints as "undefined", a scaled one as NaN.
                if divisor == 1:
                    corners.append("[undefined]")
                else:
                    corners.append("[NaN, NaN]")
                continue
            if divisor == 1:
                corners.append(f"[{js_string(list(corner))}]")
            else:
                corners.append(f"[{_scaled(corner[0], divisor)}, {_scaled(corner[1], divisor)}]")
        return "[" + ",".join(corners) + "]"


def _scaled(value, divisor: float) -> str:
    if value is None:
        return "NaN"
    return format_number(value / divisor)


def encode_spec_payload(spec: MapSpec) -> str:
    raw = json.dumps(spec.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def js_literal(value) -> str:
    if value is None:
        return "undefined"
    text = json.dumps(value, ensure_ascii=False)
    return text.replace("</", "<\\/")


def render_container_html(spec: MapSpec) -> str:
    label = "Interactive map" + (f": {spec.id}" if spec.id else "")
    attrs = [
        ("class", CONTAINER_CLASS),
        ("id", js_string(spec.id)),
        ("style", f"height:{spec.height};width:{spec.width}"),
        ("aria-label", label),
        ("data-spec", encode_spec_payload(spec)),
    ]
    rendered = " ".join(f'{name}="{html.escape(value, quote=True)}"' for name, value in attrs)
    return f"<div {rendered}></div>"


def render_script_html(spec: MapSpec, view: ViewTransform | None = None) -> str:
    view = view or ViewTransform()
    record = spec.to_dict()
    keys = [
        "id", "height", "width", "lat", "lng", "bounds", "minZoom", "maxZoom", "defaultZoom",
        "zoomDelta", "unit", "scale", "recenter", "darkMode", "tileServer", "overlay", "images",
        "markers",
    ]
    fields = ",\n".join(f"        {key}: {js_literal(record.get(key))}" for key in keys)
    center_lat, center_lng = view.center(spec)
    lines = [
        '<script type="text/javascript">',
        "(function () {",
        "    var mapSpec = {",
        fields,
        "    };",
        f"    var map = L.map({js_literal(js_string(spec.id))}, {{",
        f"        center: [{center_lat}, {center_lng}],",
        f"        zoom: {view.zoom(spec)}",
        "    });",
        f"    var imageUrl = {js_literal(spec.images)},",
        f"        imageBounds = {view.bounds(spec)};",
        "    L.imageOverlay(imageUrl, imageBounds).addTo(map);",
        "    map.mapSpec = mapSpec;",
        "})();",
        "</script>",
    ]
    return "\n".join(lines)


def render_map_nodes(spec: MapSpec, view: ViewTransform | None = None) -> list[dict]:
    return [
        {"t": "RawBlock", "c": ["html", render_container_html(spec)]},
        {"t": "RawBlock", "c": ["html", render_script_html(spec, view)]},
    ]
