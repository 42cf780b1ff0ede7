from __future__ import annotations

import math
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

EARTH_RADIUS_KM = 6371
DEFAULT_TRAVEL_KM = 10

MAX_TRAVEL_DISTANCE_KM = {
    "UP_TO_5KM": 5,
    "UP_TO_10KM": 10,
    "UP_TO_15KM": 15,
    "UP_TO_20KM": 20,
    "UP_TO_30KM": 30,
    "ENTIRE_CITY": 50,
}

Point = tuple[float, float]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres, rounded to 2 decimals."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def distance_between(a: Point | None, b: Point | None) -> float | None:
    if a is None or b is None:
        return None
    return haversine_km(a[0], a[1], b[0], b[1])


def max_travel_distance_to_km(value: str | None) -> int:
    return MAX_TRAVEL_DISTANCE_KM.get(value or "", DEFAULT_TRAVEL_KM)


def is_within_radius(center: Point, target: Point, radius_km: float) -> bool:
    return haversine_km(center[0], center[1], target[0], target[1]) <= radius_km


def filter_by_radius(
    center: Point, items: Iterable[T], radius_km: float, get_point: Callable[[T], Point | None]
) -> list[T]:
    result = []
    for item in items:
        point = get_point(item)
        if point is not None and is_within_radius(center, point, radius_km):
            result.append(item)
    return result


def sort_by_distance(center: Point, items: Iterable[T], get_point: Callable[[T], Point | None]) -> list[T]:
    """Nearest first; items without coordinates go last."""

    def key(item: T) -> tuple[int, float]:
        point = get_point(item)
        if point is None:
            return (1, 0.0)
        return (0, haversine_km(center[0], center[1], point[0], point[1]))

    return sorted(items, key=key)
