"""Geospatial helpers."""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from . import config

BAND_VERY_NEAR = "very_near"
BAND_NEAR = "near"
BAND_MODERATE = "moderate"
BAND_FAR = "far"

BAND_LABELS: Dict[str, str] = {
    BAND_VERY_NEAR: "Très proche",
    BAND_NEAR: "Proche",
    BAND_MODERATE: "Moyennement éloigné",
    BAND_FAR: "Éloigné",
}
BAND_COLORS: Dict[str, str] = {
    BAND_VERY_NEAR: "green",
    BAND_NEAR: "blue",
    BAND_MODERATE: "yellow",
    BAND_FAR: "red",
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    r = config.EARTH_RADIUS_KM
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Float error can push a just past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def round_km(value: float) -> float:
    # Half-up on the shortest decimal repr, so 0.125 -> 0.13 (round() gives 0.12).
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return round_km(haversine_km(lat1, lon1, lat2, lon2))


def distance_band(distance: float) -> str:
    if distance < config.VERY_NEAR_KM:
        return BAND_VERY_NEAR
    if distance < config.NEAR_KM:
        return BAND_NEAR
    if distance < config.MODERATE_KM:
        return BAND_MODERATE
    return BAND_FAR


def band_label(distance: float) -> str:
    return BAND_LABELS[distance_band(distance)]


def band_color(distance: float) -> str:
    return BAND_COLORS[distance_band(distance)]


def is_near(distance: float) -> bool:
    return distance < config.NEAR_KM


def format_distance(distance: float) -> str:
    if distance < 1:
        meters = Decimal(repr(distance * 1000)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return f"{int(meters)} m"
    return f"{distance:.1f} km"
