"""
Field marking generation.

Markings are produced as named polylines in the local metric frame, then
transformed to geographic coordinates for the map overlay. Soccer markings
follow FIFA Law 1 dimensions; any other sport gets the outline and halfway
line only.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from fieldlines.editor.geometry import LatLng, transform_polyline

Polyline = List[Tuple[float, float]]

LINE_COLORS: Dict[str, str] = {
    "white": "#FFFFFF",
    "yellow": "#FFFF00",
    "blue": "#0066FF",
    "orange": "#FF6600",
    "red": "#FF0000",
    "green": "#00FF00",
}
DEFAULT_LINE_COLOR = "white"

# FIFA dimensions in meters
CENTER_CIRCLE_RADIUS = 9.15
PENALTY_AREA_DEPTH = 16.5
PENALTY_AREA_WIDTH = 40.3
GOAL_AREA_DEPTH = 5.5
GOAL_AREA_WIDTH = 18.3
PENALTY_MARK_DISTANCE = 11.0
PENALTY_ARC_RADIUS = 9.15
CORNER_ARC_RADIUS = 1.0
MARK_RADIUS = 0.22

CIRCLE_SEGMENTS = 36
MARK_SEGMENTS = 12
PENALTY_ARC_POINTS = 21
CORNER_ARC_POINTS = 10


@dataclass
class MarkingLine:
    """A named polyline in geographic coordinates."""

    name: str
    points: List[LatLng]

    def as_dict(self) -> dict:
        return {"name": self.name, "points": [p.as_dict() for p in self.points]}


@dataclass
class FieldLayout:
    """Everything the map overlay needs to draw one field."""

    center: LatLng
    length: float
    width: float
    rotation: float
    line_color: str
    color_hex: str
    outline: List[LatLng]
    lines: List[MarkingLine] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "center": self.center.as_dict(),
            "length_meters": self.length,
            "width_meters": self.width,
            "rotation_degrees": self.rotation,
            "line_color": self.line_color,
            "color_hex": self.color_hex,
            "outline": [p.as_dict() for p in self.outline],
            "lines": [line.as_dict() for line in self.lines],
        }


def color_hex(line_color: str) -> str:
    """Hex color for a line color name; unknown names render white."""
    return LINE_COLORS.get(line_color, LINE_COLORS[DEFAULT_LINE_COLOR])


def _circle(cx: float, cy: float, radius: float, segments: int) -> Polyline:
    return [
        (
            cx + radius * math.cos(i / segments * 2 * math.pi),
            cy + radius * math.sin(i / segments * 2 * math.pi),
        )
        for i in range(segments + 1)
    ]


def _box_from_goal_line(half_l: float, half_width: float, depth: float, sign: int) -> Polyline:
    """Three-sided box drawn out from the goal line at y = sign * half_l."""
    goal_y = sign * half_l
    inner_y = sign * (half_l - depth)
    return [
        (-half_width, goal_y),
        (-half_width, inner_y),
        (half_width, inner_y),
        (half_width, goal_y),
    ]


def _penalty_arc(half_l: float, sign: int) -> Polyline:
    """Arc of the penalty spot's circle outside the penalty area, ending on the area's edge."""
    spot_y = sign * (half_l - PENALTY_MARK_DISTANCE)
    inset = PENALTY_AREA_DEPTH - PENALTY_MARK_DISTANCE
    if inset >= PENALTY_ARC_RADIUS:
        return []
    # angle either side of the arc's midpoint where the circle meets the area edge
    half_span = math.acos(inset / PENALTY_ARC_RADIUS)
    facing = -sign * math.pi / 2
    points = []
    for i in range(PENALTY_ARC_POINTS):
        angle = facing - half_span + 2 * half_span * i / (PENALTY_ARC_POINTS - 1)
        points.append(
            (PENALTY_ARC_RADIUS * math.cos(angle), spot_y + PENALTY_ARC_RADIUS * math.sin(angle))
        )
    return points


def _corner_arc(half_w: float, half_l: float, sx: int, sy: int) -> Polyline:
    """Quarter circle at corner (sx * half_w, sy * half_l)."""
    points = []
    for i in range(CORNER_ARC_POINTS):
        angle = (i / (CORNER_ARC_POINTS - 1)) * (math.pi / 2)
        points.append(
            (
                sx * (half_w - CORNER_ARC_RADIUS * math.sin(angle)),
                sy * (half_l - CORNER_ARC_RADIUS * math.cos(angle)),
            )
        )
    return points


def outline_polyline(length: float, width: float) -> Polyline:
    """Closed field outline."""
    half_w = width / 2
    half_l = length / 2
    return [
        (-half_w, -half_l),
        (half_w, -half_l),
        (half_w, half_l),
        (-half_w, half_l),
        (-half_w, -half_l),
    ]


def soccer_markings(length: float, width: float) -> List[Tuple[str, Polyline]]:
    """Interior soccer markings as (name, local polyline) pairs."""
    half_w = width / 2
    half_l = length / 2
    penalty_half_w = min(PENALTY_AREA_WIDTH / 2, half_w)
    goal_half_w = min(GOAL_AREA_WIDTH / 2, half_w)

    lines: List[Tuple[str, Polyline]] = [
        ("halfway_line", [(-half_w, 0.0), (half_w, 0.0)]),
        ("center_circle", _circle(0.0, 0.0, CENTER_CIRCLE_RADIUS, CIRCLE_SEGMENTS)),
        ("center_mark", _circle(0.0, 0.0, MARK_RADIUS, MARK_SEGMENTS)),
    ]

    for sign, end in ((1, "top"), (-1, "bottom")):
        lines.append(
            (f"{end}_penalty_area", _box_from_goal_line(half_l, penalty_half_w, PENALTY_AREA_DEPTH, sign))
        )
        lines.append(
            (f"{end}_goal_area", _box_from_goal_line(half_l, goal_half_w, GOAL_AREA_DEPTH, sign))
        )
        lines.append(
            (
                f"{end}_penalty_mark",
                _circle(0.0, sign * (half_l - PENALTY_MARK_DISTANCE), MARK_RADIUS, MARK_SEGMENTS),
            )
        )
        arc = _penalty_arc(half_l, sign)
        if len(arc) > 1:
            lines.append((f"{end}_penalty_arc", arc))

    for sy, vertical in ((1, "top"), (-1, "bottom")):
        for sx, horizontal in ((-1, "left"), (1, "right")):
            lines.append((f"{vertical}_{horizontal}_corner_arc", _corner_arc(half_w, half_l, sx, sy)))

    return lines


def generate_markings(length: float, width: float, sport: str = "soccer") -> List[Tuple[str, Polyline]]:
    """
    Generate all field lines in the local metric frame.

    Args:
        length: Field length in meters (y axis)
        width: Field width in meters (x axis)
        sport: Template sport; only soccer has interior markings beyond the halfway line

    Returns:
        List of (name, polyline) pairs, outline first
    """
    if length <= 0 or width <= 0:
        raise ValueError("Field length and width must be positive")

    lines: List[Tuple[str, Polyline]] = [("outline", outline_polyline(length, width))]
    if (sport or "").lower() == "soccer":
        lines.extend(soccer_markings(length, width))
    else:
        half_w = width / 2
        lines.append(("halfway_line", [(-half_w, 0.0), (half_w, 0.0)]))
    return lines


def render_layout(
    center: LatLng,
    length: float,
    width: float,
    rotation: float,
    line_color: str = DEFAULT_LINE_COLOR,
    sport: str = "soccer",
) -> FieldLayout:
    """Generate every marking and transform it onto the map."""
    local_lines = generate_markings(length, width, sport)
    geo_lines = [
        MarkingLine(name=name, points=transform_polyline(center, points, rotation))
        for name, points in local_lines
    ]
    return FieldLayout(
        center=center,
        length=length,
        width=width,
        rotation=rotation,
        line_color=line_color,
        color_hex=color_hex(line_color),
        outline=geo_lines[0].points,
        lines=geo_lines,
    )
