"""
Unit tests for editor drag handles (resize from edges, rotate from corners).
"""
import pytest
from fieldlines.editor.geometry import LatLng, geo_to_local, local_to_geo
from fieldlines.editor.handles import (
    DimensionBounds,
    handle_positions,
    resize_from_edge,
    rotate_from_corner,
)

CENTER = LatLng(-33.8688, 151.2093)
SOCCER = DimensionBounds(min_length=90, max_length=120, min_width=45, max_width=90)


def _fixed_edge_y(result, rotation, original_center=CENTER):
    """Local y of the bottom edge of a resized field, in the original frame."""
    new_center = geo_to_local(original_center, result.center, rotation)
    return new_center.y - result.length / 2


class TestDimensionBounds:
    def test_clamp(self):
        assert SOCCER.clamp_length(150) == 120
        assert SOCCER.clamp_length(10) == 90
        assert SOCCER.clamp_width(60) == 60
        assert SOCCER.contains(100, 64)
        assert not SOCCER.contains(100, 91)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValueError):
            DimensionBounds(min_length=120, max_length=90, min_width=45, max_width=90)

    def test_from_template(self):
        bounds = DimensionBounds.from_template(
            {"min_length": 90, "max_length": 120, "min_width": 45, "max_width": 90}
        )
        assert bounds == SOCCER


class TestHandlePositions:
    def test_nine_handles(self):
        handles = handle_positions(CENTER, 100, 64, 0)
        assert [h.name for h in handles] == [
            "center",
            "top",
            "bottom",
            "left",
            "right",
            "top_left",
            "top_right",
            "bottom_left",
            "bottom_right",
        ]
        kinds = {h.name: h.kind for h in handles}
        assert kinds["center"] == "move"
        assert kinds["top"] == "resize"
        assert kinds["bottom_right"] == "rotate"

    def test_handle_offsets(self):
        handles = {h.name: h for h in handle_positions(CENTER, 100, 64, 40)}
        top = geo_to_local(CENTER, handles["top"].position, 40)
        right = geo_to_local(CENTER, handles["right"].position, 40)
        corner = geo_to_local(CENTER, handles["bottom_left"].position, 40)
        assert (top.x, top.y) == pytest.approx((0, 50), abs=1e-6)
        assert (right.x, right.y) == pytest.approx((32, 0), abs=1e-6)
        assert (corner.x, corner.y) == pytest.approx((-32, -50), abs=1e-6)

    def test_icon_rotation_is_normalized(self):
        handles = handle_positions(CENTER, 100, 64, -90)
        assert all(h.icon_rotation == 270 for h in handles)
        assert handles[0].as_dict()["position"] == {"lat": CENTER.lat, "lng": CENTER.lng}


class TestResize:
    """Tests for resize_from_edge."""

    def test_drag_top_edge_grows_length(self):
        drag = local_to_geo(CENTER, 0, 55, 0)
        result = resize_from_edge(CENTER, 100, 64, 0, "top", drag, SOCCER)
        assert result.length == pytest.approx(105)
        assert result.width == 64
        assert result.clamped is False
        # bottom edge stays at y = -50
        assert _fixed_edge_y(result, 0) == pytest.approx(-50, abs=1e-6)

    def test_resize_past_max_clamps_to_bound(self):
        """Requesting length 150 with max 120 yields exactly 120."""
        drag = local_to_geo(CENTER, 0, 100, 0)  # fixed edge at -50, so raw length 150
        result = resize_from_edge(CENTER, 100, 64, 0, "top", drag, SOCCER)
        assert result.length == 120
        assert result.clamped is True
        assert _fixed_edge_y(result, 0) == pytest.approx(-50, abs=1e-6)

    def test_resize_below_min_clamps_to_bound(self):
        drag = local_to_geo(CENTER, 0, 0, 0)
        result = resize_from_edge(CENTER, 100, 64, 0, "top", drag, SOCCER)
        assert result.length == 90
        assert result.clamped is True

    def test_drag_past_fixed_edge_clamps_to_min(self):
        drag = local_to_geo(CENTER, 0, -80, 0)
        result = resize_from_edge(CENTER, 100, 64, 0, "top", drag, SOCCER)
        assert result.length == 90

    def test_drag_past_fixed_edge_without_bounds_keeps_positive_size(self):
        drag = local_to_geo(CENTER, 0, -80, 0)
        result = resize_from_edge(CENTER, 100, 64, 0, "top", drag)
        assert result.length == pytest.approx(10)

    def test_left_edge_resizes_width_with_right_edge_fixed(self):
        drag = local_to_geo(CENTER, -40, 0, 0)
        result = resize_from_edge(CENTER, 100, 64, 0, "left", drag, SOCCER)
        assert result.width == pytest.approx(72)
        assert result.length == 100
        new_center = geo_to_local(CENTER, result.center, 0)
        assert new_center.x + result.width / 2 == pytest.approx(32, abs=1e-6)

    def test_bottom_edge_on_rotated_field(self):
        rotation = 63.0
        drag = local_to_geo(CENTER, 5, -60, rotation)  # sideways drift is ignored
        result = resize_from_edge(CENTER, 100, 64, rotation, "bottom", drag, SOCCER)
        assert result.length == pytest.approx(110)
        new_center = geo_to_local(CENTER, result.center, rotation)
        assert new_center.x == pytest.approx(0, abs=1e-6)
        assert new_center.y + result.length / 2 == pytest.approx(50, abs=1e-6)

    def test_width_clamps_to_max(self):
        drag = local_to_geo(CENTER, 200, 0, 10)
        result = resize_from_edge(CENTER, 100, 64, 10, "right", drag, SOCCER)
        assert result.width == 90
        assert result.clamped is True

    def test_unknown_edge_rejected(self):
        with pytest.raises(ValueError):
            resize_from_edge(CENTER, 100, 64, 0, "middle", CENTER, SOCCER)

    def test_as_dict(self):
        result = resize_from_edge(CENTER, 100, 64, 0, "top", local_to_geo(CENTER, 0, 50, 0), SOCCER)
        data = result.as_dict()
        assert data["length_meters"] == pytest.approx(100)
        assert data["clamped"] is False
        assert set(data["center"]) == {"lat", "lng"}


class TestRotate:
    """Tests for rotate_from_corner."""

    def test_dropping_corner_in_place_is_noop(self):
        corner = local_to_geo(CENTER, 32, 50, 20)
        assert rotate_from_corner(CENTER, 100, 64, 20, "top_right", corner) == pytest.approx(20)

    def test_distance_from_center_does_not_matter(self):
        near = local_to_geo(CENTER, 16, 25, 45)
        far = local_to_geo(CENTER, 64, 100, 45)
        assert rotate_from_corner(CENTER, 100, 64, 0, "top_right", near) == pytest.approx(45, abs=1e-6)
        assert rotate_from_corner(CENTER, 100, 64, 0, "top_right", far) == pytest.approx(45, abs=1e-6)

    def test_rotation_by_known_angle(self):
        """Dragging the corner to its own position rotated by 30 degrees yields 30."""
        corner_at_30 = local_to_geo(CENTER, -32, 50, 30)
        rotation = rotate_from_corner(CENTER, 100, 64, 0, "top_left", corner_at_30)
        assert rotation == pytest.approx(30, abs=1e-6)

    def test_rotation_wraps(self):
        corner = local_to_geo(CENTER, 32, -50, 350 + 25)
        rotation = rotate_from_corner(CENTER, 100, 64, 350, "bottom_right", corner)
        assert rotation == pytest.approx(15, abs=1e-6)
        assert 0 <= rotation < 360

    def test_drag_onto_center_keeps_rotation(self):
        assert rotate_from_corner(CENTER, 100, 64, 370, "top_left", CENTER) == pytest.approx(10)

    def test_unknown_corner_rejected(self):
        with pytest.raises(ValueError):
            rotate_from_corner(CENTER, 100, 64, 0, "left", CENTER)
