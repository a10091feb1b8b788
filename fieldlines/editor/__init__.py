"""Field layout editor geometry: transforms, markings, handles and session state."""

from fieldlines.editor.geometry import LatLng, geo_to_local, local_to_geo
from fieldlines.editor.handles import (
    DimensionBounds,
    Handle,
    handle_positions,
    resize_from_edge,
    rotate_from_corner,
)
from fieldlines.editor.markings import FieldLayout, generate_markings, render_layout
from fieldlines.editor.session import EditorSession, EditorTemplate, LayoutState

__all__ = [
    "DimensionBounds",
    "EditorSession",
    "EditorTemplate",
    "FieldLayout",
    "Handle",
    "LatLng",
    "LayoutState",
    "generate_markings",
    "geo_to_local",
    "handle_positions",
    "local_to_geo",
    "render_layout",
    "resize_from_edge",
    "rotate_from_corner",
]
