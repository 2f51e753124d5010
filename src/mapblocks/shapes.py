"""Shape recognizers for loosely typed map block payload values.

Every ad hoc type check on raw YAML values lives here. Callers get back
either a typed value or ``None`` meaning "not specified".
"""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_ASSET_PREFIX = "/z_assets/"


@dataclass(frozen=True)
class TileLayer:
    template: str
    name: str | None = None
    attribution: str | None = None

    def to_dict(self) -> dict:
        out = {"template": self.template}
        if self.name is not None:
            out["name"] = self.name
        if self.attribution is not None:
            out["attribution"] = self.attribution
        return out


@dataclass(frozen=True)
class Marker:
    lat: float
    lng: float
    link: str | None = None
    popup: str | None = None

    def to_dict(self) -> dict:
        out = {"lat": self.lat, "lng": self.lng}
        if self.link is not None:
            out["link"] = self.link
        if self.popup is not None:
            out["popup"] = self.popup
        return out


def _shortest_digits(value: float) -> tuple[str, int]:
    """Shortest round-trip digits of a positive float and the decimal exponent n,
    such that value == 0.<digits> * 10**n."""
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        digits = mantissa.replace(".", "")
        n = int(exponent) + 1
    else:
        int_part, _, frac = text.partition(".")
        if int_part != "0":
            digits = int_part + frac
            n = len(int_part)
        else:
            stripped = frac.lstrip("0")
            n = len(stripped) - len(frac)
            digits = stripped
    return digits.rstrip("0"), n


def format_number(value: float) -> str:
    """Number-to-text conversion with the same output as JavaScript's ``String(n)``."""
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    digits, n = _shortest_digits(abs(float(value)))
    k = len(digits)
    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    exponent = n - 1
    exp_text = ("+" if exponent >= 0 else "-") + str(abs(exponent))
    if k == 1:
        return sign + digits + "e" + exp_text
    return sign + digits[0] + "." + digits[1:] + "e" + exp_text


def js_string(value, _seen=None) -> str:
    """Render ``value`` the way a template literal would stringify it."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        # A list that contains itself (YAML "&a [*a]") joins to "" at the cycle.
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            return ""
        seen.add(id(value))
        try:
            return ",".join("" if item is None else js_string(item, seen) for item in value)
        finally:
            seen.discard(id(value))
    return str(value)


def coerce_number(value) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value or "_" in value:
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _optional_text(value) -> str | None:
    if value is None:
        return None
    text = js_string(value).strip()
    return text or None


def parse_tile_entry(raw) -> TileLayer | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        template = _optional_text(raw.get("template"))
        if template is None:
            return None
        return TileLayer(
            template=template,
            name=_optional_text(raw.get("name")),
            attribution=_optional_text(raw.get("attribution")),
        )
    # "https://{s}.tile.example/{z}/{x}/{y}.png|Alias|Attribution"
    parts = [part.strip() for part in js_string(raw).split("|")]
    template = parts[0] if parts else ""
    if not template:
        return None
    name = parts[1] if len(parts) > 1 and parts[1] else None
    attribution = parts[2] if len(parts) > 2 and parts[2] else None
    return TileLayer(template=template, name=name, attribution=attribution)


def parse_tile_list(raw) -> list[TileLayer] | None:
    if raw is None:
        return None
    items = raw if isinstance(raw, list) else [raw]
    out = []
    for item in items:
        layer = parse_tile_entry(item)
        if layer is not None:
            out.append(layer)
    return out or None


def _positional_fields(item) -> list[str]:
    if isinstance(item, (list, tuple)):
        return [js_string(part).strip() for part in item]
    return [part.strip() for part in js_string(item).split(",")]


def parse_marker(item) -> Marker | None:
    if isinstance(item, dict):
        lng_raw = item.get("lng")
        if lng_raw is None:
            lng_raw = item.get("long")
        popup_raw = item.get("popup")
        if popup_raw is None:
            popup_raw = item.get("desc")
        lat = coerce_number(item.get("lat"))
        lng = coerce_number(lng_raw)
        link = _optional_text(item.get("link"))
        popup = _optional_text(popup_raw)
    else:
        # [type?, lat, lng, link?, popup?]
        fields = _positional_fields(item)
        offset = 0 if fields and coerce_number(fields[0]) is not None else 1

        def at(pos):
            idx = offset + pos
            if idx < len(fields) and fields[idx]:
                return fields[idx]
            return None

        lat = coerce_number(at(0))
        lng = coerce_number(at(1))
        link = at(2)
        popup = at(3)
    if lat is None or lng is None:
        return None
    return Marker(lat=lat, lng=lng, link=link, popup=popup)


def parse_markers(raw) -> list[Marker] | None:
    if raw is None or raw == "" or raw == []:
        return None
    items = raw if isinstance(raw, list) else [raw]
    out = []
    for item in items:
        marker = parse_marker(item)
        if marker is not None:
            out.append(marker)
    return out or None


Bounds = tuple[tuple[float, float], tuple[float, float]]


def parse_bounds(raw) -> Bounds | None:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        return None
    corners = []
    for corner in raw:
        if not isinstance(corner, (list, tuple)) or len(corner) != 2:
            return None
        lat = coerce_number(corner[0])
        lng = coerce_number(corner[1])
        if lat is None or lng is None:
            return None
        corners.append((lat, lng))
    return corners[0], corners[1]


def normalize_image_path(payload: dict, asset_prefix: str = DEFAULT_ASSET_PREFIX) -> str:
    # A missing image still yields "<prefix>undefined"; see DESIGN.md.
    return asset_prefix + js_string(payload.get("image"))
