"""
Editor session state for one field configuration.

The session keeps two copies of the layout: the committed state, and a
scratch copy that only exists while a handle is being dragged. Drag events
update the scratch copy; ``end_drag`` commits it and ``cancel_drag`` or
``reset`` throws it away.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from fieldlines.editor.geometry import LatLng, normalize_rotation
from fieldlines.editor.handles import (
    CENTER_HANDLE,
    CORNER_HANDLES,
    EDGE_HANDLES,
    DimensionBounds,
    Handle,
    handle_positions,
    resize_from_edge,
    rotate_from_corner,
)
from fieldlines.editor.markings import DEFAULT_LINE_COLOR, LINE_COLORS, FieldLayout, render_layout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutState:
    """Placement and shape of a field."""

    center: Optional[LatLng]
    length: float
    width: float
    rotation: float = 0.0
    line_color: str = DEFAULT_LINE_COLOR


@dataclass(frozen=True)
class EditorTemplate:
    """The parts of a field template the editor needs."""

    sport: str
    bounds: DimensionBounds
    default_length: float
    default_width: float

    @classmethod
    def from_template(cls, template: dict) -> "EditorTemplate":
        return cls(
            sport=template.get("sport", "soccer"),
            bounds=DimensionBounds.from_template(template),
            default_length=float(template["default_length"]),
            default_width=float(template["default_width"]),
        )


class EditorSession:
    """Interactive state for placing, moving, resizing and rotating one field."""

    def __init__(
        self,
        template: EditorTemplate,
        name: str = "",
        state: Optional[LayoutState] = None,
    ):
        self.template = template
        self.name = name
        self._state = state or self._default_state()
        self._scratch: Optional[LayoutState] = None
        self._drag_handle: Optional[str] = None
        self.last_resize_clamped = False

    @classmethod
    def from_configuration(cls, configuration: dict, template: dict) -> "EditorSession":
        """Open an existing saved configuration for editing."""
        state = LayoutState(
            center=LatLng(configuration["latitude"], configuration["longitude"]),
            length=configuration["length_meters"],
            width=configuration["width_meters"],
            rotation=normalize_rotation(configuration.get("rotation_degrees") or 0.0),
            line_color=configuration.get("line_color") or DEFAULT_LINE_COLOR,
        )
        return cls(EditorTemplate.from_template(template), configuration.get("name", ""), state)

    def _default_state(self) -> LayoutState:
        return LayoutState(
            center=None,
            length=self.template.default_length,
            width=self.template.default_width,
        )

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> LayoutState:
        """The state to draw: scratch while dragging, committed otherwise."""
        return self._scratch if self._scratch is not None else self._state

    @property
    def committed(self) -> LayoutState:
        return self._state

    @property
    def is_placed(self) -> bool:
        return self._state.center is not None

    @property
    def is_dragging(self) -> bool:
        return self._drag_handle is not None

    # ------------------------------------------------------------------
    # Single-step edits
    # ------------------------------------------------------------------

    def place(self, point: LatLng) -> bool:
        """Fix the field center on first click. Later clicks are ignored until reset."""
        if self.is_placed:
            return False
        self._state = replace(self._state, center=point)
        return True

    def move(self, point: LatLng) -> None:
        self._require_placed()
        self._state = self._moved(self._state, point)

    def resize(self, edge: str, point: LatLng) -> LayoutState:
        self._require_placed()
        self._state = self._resized(self._state, edge, point)
        return self._state

    def rotate(self, corner: str, point: LatLng) -> LayoutState:
        self._require_placed()
        self._state = self._rotated(self._state, corner, point)
        return self._state

    def set_rotation(self, degrees: float) -> None:
        self._state = replace(self._state, rotation=normalize_rotation(degrees))

    def set_dimensions(self, length: float, width: float) -> bool:
        """Set dimensions directly, clamped to the template. Returns True if clamped."""
        bounds = self.template.bounds
        new_length = bounds.clamp_length(length)
        new_width = bounds.clamp_width(width)
        self._state = replace(self._state, length=new_length, width=new_width)
        return new_length != length or new_width != width

    def set_line_color(self, line_color: str) -> None:
        if line_color not in LINE_COLORS:
            raise ValueError(f"Unknown line color: {line_color}")
        self._state = replace(self._state, line_color=line_color)

    def reset(self) -> None:
        """Clear placement, restore template defaults and drop any drag in progress."""
        self._state = self._default_state()
        self._scratch = None
        self._drag_handle = None
        self.last_resize_clamped = False

    # ------------------------------------------------------------------
    # Two-phase drag
    # ------------------------------------------------------------------

    def begin_drag(self, handle: str) -> None:
        self._require_placed()
        if handle != CENTER_HANDLE and handle not in EDGE_HANDLES and handle not in CORNER_HANDLES:
            raise ValueError(f"Unknown handle: {handle}")
        self._drag_handle = handle
        self._scratch = self._state

    def drag(self, point: LatLng) -> LayoutState:
        """Apply a drag event to the scratch state only."""
        if self._scratch is None or self._drag_handle is None:
            raise RuntimeError("No drag in progress")
        handle = self._drag_handle
        if handle == CENTER_HANDLE:
            self._scratch = self._moved(self._scratch, point)
        elif handle in EDGE_HANDLES:
            # each event measures from the shape as of the previous event
            self._scratch = self._resized(self._scratch, handle, point)
        else:
            self._scratch = self._rotated(self._scratch, handle, point)
        return self._scratch

    def end_drag(self) -> LayoutState:
        """Commit the scratch state."""
        if self._scratch is not None:
            self._state = self._scratch
        self._scratch = None
        self._drag_handle = None
        return self._state

    def cancel_drag(self) -> LayoutState:
        self._scratch = None
        self._drag_handle = None
        return self._state

    # ------------------------------------------------------------------
    # Rendering and saving
    # ------------------------------------------------------------------

    def layout(self) -> Optional[FieldLayout]:
        """Redraw the current state; None until the field is placed."""
        state = self.state
        if state.center is None:
            return None
        return render_layout(
            state.center,
            state.length,
            state.width,
            state.rotation,
            state.line_color,
            self.template.sport,
        )

    def handles(self) -> List[Handle]:
        state = self.state
        if state.center is None:
            return []
        return handle_positions(state.center, state.length, state.width, state.rotation)

    def validate_for_save(self) -> List[str]:
        errors = []
        if not (self.name or "").strip():
            errors.append("Configuration name is required")
        if not self.is_placed:
            errors.append("Field has not been placed on the map")
        return errors

    def to_configuration_payload(self) -> dict:
        """Body for creating or updating a configuration from the committed state."""
        errors = self.validate_for_save()
        if errors:
            raise ValueError(errors[0])
        state = self._state
        return {
            "name": self.name.strip(),
            "latitude": state.center.lat,
            "longitude": state.center.lng,
            "rotation_degrees": state.rotation,
            "length_meters": state.length,
            "width_meters": state.width,
            "line_color": state.line_color,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_placed(self) -> None:
        if not self.is_placed:
            raise ValueError("Field has not been placed")

    @staticmethod
    def _moved(state: LayoutState, point: LatLng) -> LayoutState:
        return replace(state, center=point)

    def _resized(self, state: LayoutState, edge: str, point: LatLng) -> LayoutState:
        result = resize_from_edge(
            state.center,
            state.length,
            state.width,
            state.rotation,
            edge,
            point,
            self.template.bounds,
        )
        self.last_resize_clamped = result.clamped
        if result.clamped:
            logger.debug(f"Resize from {edge} clamped to {result.length}x{result.width}")
        return replace(state, center=result.center, length=result.length, width=result.width)

    @staticmethod
    def _rotated(state: LayoutState, corner: str, point: LatLng) -> LayoutState:
        rotation = rotate_from_corner(
            state.center, state.length, state.width, state.rotation, corner, point
        )
        return replace(state, rotation=rotation)
