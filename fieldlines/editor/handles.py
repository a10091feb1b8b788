"""
Drag handles for the field layout editor.

Edge handles resize the field along one axis while the opposite edge stays
put. Corner handles rotate the field around its center. Both take the drag
position in geographic coordinates and return new layout values.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fieldlines.editor.geometry import (
    METERS_PER_DEGREE_LAT,
    LatLng,
    LocalPoint,
    geo_to_local,
    local_to_geo,
    meters_per_degree_lng,
    normalize_rotation,
)

EDGE_HANDLES = ("top", "bottom", "left", "right")
CORNER_HANDLES = ("top_left", "top_right", "bottom_left", "bottom_right")
CENTER_HANDLE = "center"

# drags closer than this to the center carry no usable angle
MIN_ROTATE_RADIUS_METERS = 0.01


@dataclass(frozen=True)
class DimensionBounds:
    """Allowed field dimensions in meters, taken from a field template."""

    min_length: float
    max_length: float
    min_width: float
    max_width: float

    def __post_init__(self):
        if self.min_length > self.max_length:
            raise ValueError("min_length cannot exceed max_length")
        if self.min_width > self.max_width:
            raise ValueError("min_width cannot exceed max_width")

    @classmethod
    def from_template(cls, template: dict) -> "DimensionBounds":
        return cls(
            min_length=float(template["min_length"]),
            max_length=float(template["max_length"]),
            min_width=float(template["min_width"]),
            max_width=float(template["max_width"]),
        )

    def clamp_length(self, length: float) -> float:
        return min(max(length, self.min_length), self.max_length)

    def clamp_width(self, width: float) -> float:
        return min(max(width, self.min_width), self.max_width)

    def contains(self, length: float, width: float) -> bool:
        return (
            self.min_length <= length <= self.max_length
            and self.min_width <= width <= self.max_width
        )


@dataclass(frozen=True)
class ResizeResult:
    center: LatLng
    length: float
    width: float
    clamped: bool

    def as_dict(self) -> dict:
        return {
            "center": self.center.as_dict(),
            "length_meters": self.length,
            "width_meters": self.width,
            "clamped": self.clamped,
        }


@dataclass(frozen=True)
class Handle:
    """A draggable marker on the map."""

    name: str
    kind: str  # move, resize or rotate
    position: LatLng
    icon_rotation: float

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind,
            "position": self.position.as_dict(),
            "icon_rotation": self.icon_rotation,
        }


def _edge_local(edge: str, length: float, width: float) -> Tuple[float, float]:
    half_l = length / 2
    half_w = width / 2
    return {
        "top": (0.0, half_l),
        "bottom": (0.0, -half_l),
        "left": (-half_w, 0.0),
        "right": (half_w, 0.0),
    }[edge]


def _corner_local(corner: str, length: float, width: float) -> Tuple[float, float]:
    vertical, horizontal = corner.split("_")
    x = width / 2 if horizontal == "right" else -width / 2
    y = length / 2 if vertical == "top" else -length / 2
    return x, y


def handle_positions(
    center: LatLng, length: float, width: float, rotation: float
) -> List[Handle]:
    """Center, edge and corner handles for the current layout."""
    icon_rotation = normalize_rotation(rotation)
    handles = [Handle(CENTER_HANDLE, "move", center, icon_rotation)]
    for edge in EDGE_HANDLES:
        x, y = _edge_local(edge, length, width)
        handles.append(Handle(edge, "resize", local_to_geo(center, x, y, rotation), icon_rotation))
    for corner in CORNER_HANDLES:
        x, y = _corner_local(corner, length, width)
        handles.append(Handle(corner, "rotate", local_to_geo(center, x, y, rotation), icon_rotation))
    return handles


def resize_from_edge(
    center: LatLng,
    length: float,
    width: float,
    rotation: float,
    edge: str,
    drag_point: LatLng,
    bounds: Optional[DimensionBounds] = None,
) -> ResizeResult:
    """
    Resize the field by dragging one edge handle.

    The drag point is taken into the field's local frame. The edge opposite
    the dragged one stays fixed; the new size is the distance from that fixed
    edge to the drag point along the edge's axis, clamped to ``bounds``. The
    new center is the midpoint between the fixed edge and the new edge.

    A drag onto or past the fixed edge produces a non-positive raw size,
    which clamps to the minimum (or to a tenth of the old size without
    bounds, keeping the field drawable).

    Args:
        center: Current geographic center
        length: Current length in meters
        width: Current width in meters
        rotation: Current rotation in degrees
        edge: One of top, bottom, left, right
        drag_point: Geographic position of the dragged handle
        bounds: Template dimension bounds, or None for unconstrained

    Returns:
        ResizeResult with new center, dimensions, and whether clamping applied
    """
    if edge not in EDGE_HANDLES:
        raise ValueError(f"Unknown edge handle: {edge}")

    local = geo_to_local(center, drag_point, rotation)

    if edge in ("top", "bottom"):
        sign = 1.0 if edge == "top" else -1.0
        fixed = -sign * length / 2
        raw = sign * (local.y - fixed)
        if bounds is not None:
            new_size = bounds.clamp_length(raw)
        else:
            new_size = raw if raw > 0 else length / 10
        new_center_local = LocalPoint(0.0, fixed + sign * new_size / 2)
        new_length, new_width = new_size, width
    else:
        sign = 1.0 if edge == "right" else -1.0
        fixed = -sign * width / 2
        raw = sign * (local.x - fixed)
        if bounds is not None:
            new_size = bounds.clamp_width(raw)
        else:
            new_size = raw if raw > 0 else width / 10
        new_center_local = LocalPoint(fixed + sign * new_size / 2, 0.0)
        new_length, new_width = length, new_size

    new_center = local_to_geo(center, new_center_local.x, new_center_local.y, rotation)
    return ResizeResult(
        center=new_center,
        length=new_length,
        width=new_width,
        clamped=new_size != raw,
    )


def _bearing(center_lat: float, x: float, y: float) -> float:
    """
    Bearing in degrees of a local offset, measured in the degree space the
    rotation is applied in (0 = along +y, 90 = along +x).
    """
    d_lat = y / METERS_PER_DEGREE_LAT
    d_lng = x / meters_per_degree_lng(center_lat)
    return math.degrees(math.atan2(d_lng, d_lat))


def rotate_from_corner(
    center: LatLng,
    length: float,
    width: float,
    rotation: float,
    corner: str,
    drag_point: LatLng,
) -> float:
    """
    Rotate the field by dragging one corner handle.

    The drag point's angle around the center is measured in the field's
    unrotated frame; subtracting the corner's own unrotated angle gives the
    rotation delta. Dropping the corner back where it was is a no-op.

    Returns:
        New rotation in [0, 360)
    """
    if corner not in CORNER_HANDLES:
        raise ValueError(f"Unknown corner handle: {corner}")

    local = geo_to_local(center, drag_point, rotation)
    if math.hypot(local.x, local.y) < MIN_ROTATE_RADIUS_METERS:
        return normalize_rotation(rotation)

    corner_x, corner_y = _corner_local(corner, length, width)
    delta = _bearing(center.lat, local.x, local.y) - _bearing(center.lat, corner_x, corner_y)
    return normalize_rotation(rotation + delta)
