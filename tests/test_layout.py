import pytest

from sphereview.core.layout import (
    MIN_SCALE, ElementLayout, LayoutEngine, Point2D, compute_layout, draw_order, layouts_equal, project_point,
)
from sphereview.core.quaternion import Quaternion
from sphereview.core.sphere_points import fibonacci_sphere


@pytest.fixture
def tilted():
    return Quaternion.from_axis_angle(0.9, (0.4, -1.0, 0.3))


def test_far_pole_projects_to_center_at_minimum_scale():
    layout = project_point(0, (0.0, 0.0, 1.0), 150.0, (200.0, 200.0), True)
    assert layout.position == Point2D(200.0, 200.0)
    assert layout.scale == pytest.approx(MIN_SCALE)
    assert layout.opacity == pytest.approx(0.4)
    assert layout.stacking_order == layout.scale
    assert layout.front_facing is False


def test_near_pole_is_full_scale_and_front_facing():
    layout = project_point(3, (0.0, 0.0, -1.0), 150.0, (200.0, 200.0), True)
    assert layout.index == 3
    assert layout.scale == 1.0
    assert layout.opacity == pytest.approx(1.1)
    assert layout.front_facing is True


def test_equator_point_is_offset_by_radius():
    layout = project_point(0, (1.0, 0.0, 0.0), 150.0, (200.0, 100.0), False)
    assert layout.position == Point2D(350.0, 100.0)
    assert layout.scale == pytest.approx(0.5)
    assert layout.opacity is None


def test_empty_layout():
    assert compute_layout(0, 100.0, Quaternion.identity(), (0.0, 0.0)) == ()
    assert compute_layout(-4, 100.0, Quaternion.identity(), (0.0, 0.0)) == ()


def test_invariants_hold_for_every_element(tilted):
    layouts = compute_layout(200, 120.0, tilted, (160.0, 240.0))
    assert [layout.index for layout in layouts] == list(range(200))
    for layout in layouts:
        assert MIN_SCALE <= layout.scale <= 1.0
        assert 0.4 - 1e-12 <= layout.opacity <= 1.1 + 1e-12
        assert layout.stacking_order == layout.scale
        assert layout.front_facing == (layout.depth < 0.0)


def test_elements_map_to_points_in_reverse_order():
    count = 5
    points = fibonacci_sphere(count)
    layouts = compute_layout(count, 1.0, Quaternion.identity(), (0.0, 0.0))
    for k, layout in enumerate(layouts):
        x, y, z = points[count - 1 - k]
        assert layout.position.x == pytest.approx(x)
        assert layout.position.y == pytest.approx(y)
        assert layout.depth == pytest.approx(z)
    # The last element sits on the first (highest z) point.
    assert layouts[-1].scale == min(layout.scale for layout in layouts)


def test_rotation_is_applied_before_projection(tilted):
    count = 12
    points = fibonacci_sphere(count)
    layouts = compute_layout(count, 10.0, tilted, (0.0, 0.0))
    for k, layout in enumerate(layouts):
        x, y, z = tilted.rotate_vector(tuple(points[count - 1 - k]))
        assert (layout.position.x, layout.position.y) == pytest.approx((10.0 * x, 10.0 * y))
        assert layout.depth == pytest.approx(z)


def test_negative_radius_collapses_to_center(caplog):
    layouts = compute_layout(6, -10.0, Quaternion.identity(), (50.0, 60.0))
    assert all(layout.position == Point2D(50.0, 60.0) for layout in layouts)
    assert "clamped" in caplog.text


def test_opacity_can_be_disabled():
    layouts = compute_layout(10, 50.0, Quaternion.identity(), (0.0, 0.0), opacity_enabled=False)
    assert all(layout.opacity is None for layout in layouts)


def test_draw_order_is_back_to_front(tilted):
    layouts = compute_layout(30, 100.0, tilted, (0.0, 0.0))
    order = draw_order(layouts)
    scales = [layouts[i].scale for i in order]
    assert scales == sorted(scales)
    assert sorted(order) == list(range(30))


def test_engine_caches_points_per_count(tilted):
    engine = LayoutEngine()
    first = engine.points_for(10)
    assert engine.points_for(10) is first
    assert engine.points_for(11) is not first
    assert len(engine.points_for(11)) == 11

    assert layouts_equal(
        engine.compute(25, 80.0, tilted, (10.0, 20.0)),
        compute_layout(25, 80.0, tilted, (10.0, 20.0)),
    )


def test_layouts_equal_detects_differences():
    a = compute_layout(4, 100.0, Quaternion.identity(), (0.0, 0.0))
    b = compute_layout(4, 100.0, Quaternion.from_axis_angle(0.01, (0.0, 1.0, 0.0)), (0.0, 0.0))
    assert layouts_equal(a, a)
    assert not layouts_equal(a, b)
    assert not layouts_equal(a, a[:3])


def test_element_layout_is_immutable():
    layout = ElementLayout(0, Point2D(0.0, 0.0), 1.0, None, 1.0, True, -1.0)
    with pytest.raises(AttributeError):
        layout.scale = 0.5
