from sphereview.ui.qt_scheduler import QtTickScheduler


def test_repeats_until_cancelled(qtbot):
    scheduler = QtTickScheduler()
    calls = []
    handle = scheduler.schedule_repeating(0.005, lambda: calls.append(1))
    assert scheduler.active_count == 1

    qtbot.waitUntil(lambda: len(calls) >= 3)
    scheduler.cancel(handle)
    assert scheduler.active_count == 0

    seen = len(calls)
    qtbot.wait(50)
    assert len(calls) == seen


def test_cancel_is_per_handle(qtbot):
    scheduler = QtTickScheduler()
    a, b = [], []
    handle_a = scheduler.schedule_repeating(0.005, lambda: a.append(1))
    scheduler.schedule_repeating(0.005, lambda: b.append(1))

    scheduler.cancel(handle_a)
    qtbot.waitUntil(lambda: len(b) >= 2)
    assert a == []

    # Unknown and repeated handles are ignored.
    scheduler.cancel(handle_a)
    scheduler.cancel(12345)
    scheduler.cancel_all()
    assert scheduler.active_count == 0
