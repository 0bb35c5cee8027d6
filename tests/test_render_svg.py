import matplotlib.path as mpath
import pytest

from gantt_timeline.chart import GanttChart
from gantt_timeline.render_svg import parse_path, render_svg
from gantt_timeline.surface import Canvas


def test_renderer_produces_svg(tmp_path):
    canvas = Canvas()
    chart = GanttChart(
        canvas,
        [
            {"id": "a", "name": "Design", "start": "2024-01-10", "end": "2024-01-12", "progress": 40},
            {"id": "b", "name": "Build", "start": "2024-01-15", "end": "2024-01-20", "dependencies": "a"},
            {"id": "c", "name": "Unscheduled", "start": "2024-01-22"},
        ],
    )
    out_file = tmp_path / "nested" / "chart.svg"

    render_svg(canvas, str(out_file), width=chart.width, height=chart.height)

    assert out_file.exists()
    content = out_file.read_text(encoding="utf-8")
    assert "<svg" in content


def test_render_without_area_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        render_svg(Canvas(), str(tmp_path / "empty.svg"))


def test_parse_path_handles_moves_lines_arcs_and_relative_verticals():
    path = parse_path("M 50 88 L 50 111 A 5 5 0 0 0 55 116 L 191 116 M 0 0 v 10")

    assert list(path.codes) == [
        mpath.Path.MOVETO,
        mpath.Path.LINETO,
        mpath.Path.CURVE3,
        mpath.Path.CURVE3,
        mpath.Path.LINETO,
        mpath.Path.MOVETO,
        mpath.Path.LINETO,
    ]
    # The arc's control point is the corner it rounds.
    assert tuple(path.vertices[2]) == (50, 116)
    assert tuple(path.vertices[-1]) == (0, 10)


def test_parse_path_rejects_unknown_commands():
    assert parse_path("") is None
    with pytest.raises(ValueError):
        parse_path("M 0 0 C 1 1 2 2 3 3")
