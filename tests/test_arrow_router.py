from gantt_timeline.arrow_router import route
from gantt_timeline.config import ChartOptions
from gantt_timeline.task_models import BarGeometry

OPTIONS = ChartOptions()


def test_straight_route_drops_bends_and_runs_in():
    path = route(BarGeometry(0, 68, 100, 20), BarGeometry(200, 106, 100, 20), OPTIONS, "a", "b")

    assert not path.detour
    assert path.d == "M 50 88 L 50 111 A 5 5 0 0 0 55 116 L 191 116 M 186 111 L 191 116 L 186 121"
    assert (path.from_id, path.to_id) == ("a", "b")


def test_route_upwards_flips_sweep():
    path = route(BarGeometry(0, 106, 100, 20), BarGeometry(200, 68, 100, 20), OPTIONS)

    arc = path.commands[2]
    assert arc.op == "A"
    assert arc.sweep == 1
    assert (path.commands[1].x, path.commands[1].y) == (50, 83)


def test_start_slides_left_when_dependent_starts_under_midpoint():
    path = route(BarGeometry(0, 68, 100, 20), BarGeometry(60, 106, 100, 20), OPTIONS)

    assert not path.detour
    assert path.points[0] == (40, 88)


def test_detour_when_dependent_starts_before_dependency():
    path = route(BarGeometry(100, 68, 100, 20), BarGeometry(50, 106, 40, 20), OPTIONS)

    assert path.detour
    assert path.points[0] == (110, 88)
    # Runs left past the dependent's start before turning down.
    assert min(x for x, _ in path.points) < 50 - OPTIONS.padding
    assert path.points[-3:] == [(36, 111), (41, 116), (36, 121)]
