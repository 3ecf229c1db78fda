"""Great-circle distance and location quantization helpers."""
from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0
# Approximate length of one degree of latitude
KM_PER_DEGREE = 111.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometres between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_many_km(
    lat: float,
    lon: float,
    lats: Sequence[float] | np.ndarray,
    lons: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Vectorized distance from one origin to many points."""
    lats_arr = np.radians(np.asarray(lats, dtype=np.float64))
    lons_arr = np.radians(np.asarray(lons, dtype=np.float64))
    if lats_arr.size == 0:
        return np.zeros(0, dtype=np.float64)

    lat0 = math.radians(lat)
    lon0 = math.radians(lon)
    a = (
        np.sin((lats_arr - lat0) / 2) ** 2
        + math.cos(lat0) * np.cos(lats_arr) * np.sin((lons_arr - lon0) / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def location_key(latitude: float, longitude: float, precision_km: float = 0.1) -> str:
    """Quantize a coordinate onto a grid of roughly ``precision_km`` spacing.

    Nearby searches share a key, so pattern lookups never compare raw floats.
    """
    if precision_km <= 0:
        raise ValueError("precision_km must be positive")
    step = precision_km / KM_PER_DEGREE
    lat = _round_half_up(latitude / step) * step
    lon = _round_half_up(longitude / step) * step
    # Normalize -0.0 so keys stay stable around the equator / meridian.
    return f"{lat + 0.0:.4f}_{lon + 0.0:.4f}"
