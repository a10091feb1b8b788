"""
Local metric <-> geographic coordinate transforms for field layouts.

Field layouts are designed in a local metric frame centered on the field:
x runs across the width axis, y runs along the length axis. A layout is
anchored to the map by its geographic center and rotated clockwise by
``rotation`` degrees.

The conversion uses a flat-earth approximation with a single reference
latitude (the anchor's). Field footprints are tens to a few hundred meters,
where the error is far below what a line-marking crew can measure. Larger
distances or anchors close to the poles are outside the supported range.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

METERS_PER_DEGREE_LAT = 111320.0

# metersPerDegreeLng collapses to zero at the poles
MAX_ABS_LATITUDE = 89.9


@dataclass(frozen=True)
class LatLng:
    """A geographic point in decimal degrees."""

    lat: float
    lng: float

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class LocalPoint:
    """An offset from the field center in meters (x = width axis, y = length axis)."""

    x: float
    y: float


def meters_per_degree_lng(lat: float) -> float:
    """Meters spanned by one degree of longitude at the given latitude."""
    if abs(lat) >= MAX_ABS_LATITUDE:
        raise ValueError(f"Latitude {lat} is too close to a pole for field layout")
    return METERS_PER_DEGREE_LAT * math.cos(lat * math.pi / 180)


def normalize_rotation(degrees: float) -> float:
    """Wrap a rotation into [0, 360)."""
    result = degrees % 360.0
    # -1e-17 % 360 rounds up to 360.0
    if result >= 360.0:
        result = 0.0
    return result


def normalize_longitude(lng: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    result = (lng + 180.0) % 360.0 - 180.0
    if result >= 180.0:
        result = -180.0
    return result


def local_to_geo(center: LatLng, x: float, y: float, rotation: float) -> LatLng:
    """
    Convert a local offset to a geographic point.

    Args:
        center: Geographic anchor of the field
        x: Offset across the width axis in meters
        y: Offset along the length axis in meters
        rotation: Field rotation in degrees

    Returns:
        LatLng of the offset point
    """
    m_lng = meters_per_degree_lng(center.lat)
    d_lat = y / METERS_PER_DEGREE_LAT
    d_lng = x / m_lng

    theta = rotation * math.pi / 180
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    r_lat = d_lat * cos_t - d_lng * sin_t
    r_lng = d_lat * sin_t + d_lng * cos_t

    return LatLng(center.lat + r_lat, normalize_longitude(center.lng + r_lng))


def geo_to_local(center: LatLng, point: LatLng, rotation: float) -> LocalPoint:
    """
    Convert a geographic point to a local offset from the field center.

    Exact inverse of ``local_to_geo`` for the same center and rotation: the
    degree delta is rotated by -rotation, then scaled back to meters.
    """
    m_lng = meters_per_degree_lng(center.lat)
    d_lat = point.lat - center.lat
    # shortest way around when the field straddles the antimeridian
    d_lng = normalize_longitude(point.lng - center.lng)

    theta = -rotation * math.pi / 180
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    u_lat = d_lat * cos_t - d_lng * sin_t
    u_lng = d_lat * sin_t + d_lng * cos_t

    return LocalPoint(x=u_lng * m_lng, y=u_lat * METERS_PER_DEGREE_LAT)


def transform_polyline(
    center: LatLng, points: List[Tuple[float, float]], rotation: float
) -> List[LatLng]:
    """Transform a local polyline (list of (x, y) tuples) to geographic points."""
    return [local_to_geo(center, x, y, rotation) for x, y in points]


def local_corners(length: float, width: float) -> List[Tuple[float, float]]:
    """Unrotated corners in order top-left, top-right, bottom-right, bottom-left."""
    hw = width / 2
    hl = length / 2
    return [(-hw, hl), (hw, hl), (hw, -hl), (-hw, -hl)]


def outline_corners(
    center: LatLng, length: float, width: float, rotation: float
) -> List[LatLng]:
    """Geographic corners of the field outline."""
    return transform_polyline(center, local_corners(length, width), rotation)

