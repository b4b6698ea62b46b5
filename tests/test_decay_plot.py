import pytest

from sphereview.core.inertia import DecayConfig, InertialDecayController, ManualTickScheduler
from sphereview.core.rotation_state import RotationState
from sphereview.ui.decay_plot import DecayPlotWidget


@pytest.fixture
def scheduler():
    return ManualTickScheduler()


@pytest.fixture
def controller(scheduler):
    return InertialDecayController(RotationState(), scheduler)


@pytest.fixture
def plot(qtbot, controller):
    w = DecayPlotWidget()
    qtbot.addWidget(w)
    w.attach(controller)
    return w


def test_records_one_sample_per_tick(plot, controller, scheduler):
    controller.start(50.0, -50.0)
    scheduler.run_until_idle()

    samples = plot.samples
    assert len(samples) == 81
    first = 0.5 * DecayConfig().multiplier
    assert samples[0] == pytest.approx((first, first))
    assert samples[-1][0] < 0.1

    x, y = plot._curve_x.getData()
    assert len(x) == 81
    assert y[0] == pytest.approx(first)


def test_new_session_starts_a_new_curve(plot, controller, scheduler):
    controller.start(50.0, 50.0)
    scheduler.run_until_idle()
    controller.start(50.0, 50.0)
    scheduler.advance(10)
    assert len(plot.samples) == 10


def test_clear_samples(plot):
    plot.record(1.0, -2.0)
    assert plot.samples == [(1.0, 2.0)]
    plot.clear_samples()
    assert plot.samples == []
