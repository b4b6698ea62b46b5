from sphereview.__main__ import main
from sphereview.core.layout import compute_layout
from sphereview.core.quaternion import Quaternion
from sphereview.ui.snapshot import render_layout


def test_render_layout_writes_image(tmp_path):
    layouts = compute_layout(20, 80.0, Quaternion.from_axis_angle(0.4, (1.0, 1.0, 0.0)), (100.0, 100.0))
    out = render_layout(layouts, (200, 200), tmp_path / "nested" / "sphere.png")
    assert out.exists()
    assert out.stat().st_size > 0


def test_render_empty_layout(tmp_path):
    out = render_layout((), (100, 50), tmp_path / "empty.png")
    assert out.exists()


def test_cli_snapshot_with_fling(tmp_path):
    out = tmp_path / "cli.png"
    rc = main(["--snapshot", str(out), "--count", "10", "--size", "300x200", "--fling", "500", "0"])
    assert rc == 0
    assert out.exists()
