"""
Unit tests for field marking generation.
"""
import pytest
from fieldlines.editor.geometry import LatLng, geo_to_local
from fieldlines.editor import markings
from fieldlines.editor.markings import color_hex, generate_markings, render_layout

CENTER = LatLng(51.5074, -0.1278)


def _by_name(lines):
    return {name: points for name, points in lines}


class TestGenerateMarkings:
    """Tests for markings in the local metric frame."""

    def test_outline_comes_first_and_is_closed(self):
        lines = generate_markings(100, 64)
        name, outline = lines[0]
        assert name == "outline"
        assert outline[0] == outline[-1]
        assert {(abs(x), abs(y)) for x, y in outline} == {(32, 50)}

    def test_soccer_has_full_marking_set(self):
        names = set(_by_name(generate_markings(105, 68, "soccer")))
        expected = {
            "outline",
            "halfway_line",
            "center_circle",
            "center_mark",
            "top_penalty_area",
            "bottom_penalty_area",
            "top_goal_area",
            "bottom_goal_area",
            "top_penalty_mark",
            "bottom_penalty_mark",
            "top_penalty_arc",
            "bottom_penalty_arc",
            "top_left_corner_arc",
            "top_right_corner_arc",
            "bottom_left_corner_arc",
            "bottom_right_corner_arc",
        }
        assert names == expected

    def test_sport_name_is_case_insensitive(self):
        assert len(generate_markings(100, 64, "Soccer")) == len(generate_markings(100, 64, "soccer"))

    def test_other_sports_get_outline_and_halfway_line(self):
        names = [name for name, _ in generate_markings(100, 64, "rugby")]
        assert names == ["outline", "halfway_line"]

    def test_non_positive_dimensions_rejected(self):
        with pytest.raises(ValueError):
            generate_markings(0, 64)
        with pytest.raises(ValueError):
            generate_markings(100, -1)

    def test_penalty_area_dimensions(self):
        lines = _by_name(generate_markings(100, 64))
        top = lines["top_penalty_area"]
        assert top[0] == pytest.approx((-markings.PENALTY_AREA_WIDTH / 2, 50))
        assert top[1] == pytest.approx((-markings.PENALTY_AREA_WIDTH / 2, 50 - markings.PENALTY_AREA_DEPTH))
        bottom = lines["bottom_goal_area"]
        assert bottom[1] == pytest.approx((-markings.GOAL_AREA_WIDTH / 2, -50 + markings.GOAL_AREA_DEPTH))

    def test_penalty_area_never_wider_than_field(self):
        lines = _by_name(generate_markings(90, 30))
        xs = [abs(x) for x, _ in lines["top_penalty_area"]]
        assert max(xs) == pytest.approx(15)

    def test_center_circle_radius(self):
        circle = _by_name(generate_markings(100, 64))["center_circle"]
        assert len(circle) == markings.CIRCLE_SEGMENTS + 1
        for x, y in circle:
            assert (x ** 2 + y ** 2) ** 0.5 == pytest.approx(markings.CENTER_CIRCLE_RADIUS)

    def test_penalty_arc_stays_outside_penalty_area(self):
        lines = _by_name(generate_markings(100, 64))
        edge = 50 - markings.PENALTY_AREA_DEPTH
        top = lines["top_penalty_arc"]
        bottom = lines["bottom_penalty_arc"]
        assert all(y < edge for _, y in top[1:-1])
        assert all(y > -edge for _, y in bottom[1:-1])

    def test_penalty_arc_ends_on_penalty_area_edge(self):
        lines = _by_name(generate_markings(100, 64))
        edge = 50 - markings.PENALTY_AREA_DEPTH
        for name, edge_y in (("top_penalty_arc", edge), ("bottom_penalty_arc", -edge)):
            arc = lines[name]
            assert len(arc) == markings.PENALTY_ARC_POINTS
            assert arc[0][1] == pytest.approx(edge_y)
            assert arc[-1][1] == pytest.approx(edge_y)
            assert arc[0][0] == pytest.approx(-arc[-1][0])
            spot_y = edge_y + (1 if edge_y > 0 else -1) * (markings.PENALTY_AREA_DEPTH - markings.PENALTY_MARK_DISTANCE)
            for x, y in arc:
                assert (x ** 2 + (y - spot_y) ** 2) ** 0.5 == pytest.approx(markings.PENALTY_ARC_RADIUS)

    def test_corner_arcs_touch_the_touchlines(self):
        arc = _by_name(generate_markings(100, 64))["top_right_corner_arc"]
        assert arc[0] == pytest.approx((32, 50 - markings.CORNER_ARC_RADIUS))
        assert arc[-1] == pytest.approx((32 - markings.CORNER_ARC_RADIUS, 50))


class TestRenderLayout:
    """Tests for the geographic layout."""

    def test_layout_lines_match_local_markings(self):
        layout = render_layout(CENTER, 100, 64, 25.0, "yellow")
        local = generate_markings(100, 64)
        assert [line.name for line in layout.lines] == [name for name, _ in local]
        for line, (_, points) in zip(layout.lines, local):
            for geo, (x, y) in zip(line.points, points):
                back = geo_to_local(CENTER, geo, 25.0)
                assert back.x == pytest.approx(x, abs=1e-6)
                assert back.y == pytest.approx(y, abs=1e-6)

    def test_outline_is_first_line(self):
        layout = render_layout(CENTER, 100, 64, 0.0)
        assert layout.outline == layout.lines[0].points

    def test_as_dict_shape(self):
        data = render_layout(CENTER, 100, 64, 90.0, "blue").as_dict()
        assert data["center"] == {"lat": CENTER.lat, "lng": CENTER.lng}
        assert data["length_meters"] == 100
        assert data["width_meters"] == 64
        assert data["rotation_degrees"] == 90.0
        assert data["color_hex"] == "#0066FF"
        assert len(data["outline"]) == 5
        assert {"name", "points"} <= set(data["lines"][0])

    def test_redraw_is_identical(self):
        first = render_layout(CENTER, 100, 64, 17.0, "white").as_dict()
        second = render_layout(CENTER, 100, 64, 17.0, "white").as_dict()
        assert first == second


class TestColors:
    def test_known_colors(self):
        assert color_hex("white") == "#FFFFFF"
        assert color_hex("orange") == "#FF6600"

    def test_unknown_color_renders_white(self):
        assert color_hex("purple") == "#FFFFFF"
