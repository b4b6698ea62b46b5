import sys

import pytest

from sphereview.ui.error_notifier import ErrorNotifier


@pytest.fixture
def notifier(qapp, monkeypatch):
    n = ErrorNotifier()
    shown = []
    monkeypatch.setattr(n, "_show", lambda *args: shown.append(args))
    n.shown = shown
    return n


def test_duplicate_notifications_are_shown_once(notifier, qtbot, caplog):
    assert notifier.notify("Error", "broken", dedup_seconds=60.0) is True
    assert notifier.notify("Error", "broken", dedup_seconds=60.0) is False
    assert notifier.notify("Error", "other", dedup_seconds=60.0) is True

    qtbot.waitUntil(lambda: len(notifier.shown) == 2)
    assert caplog.text.count("Error: broken") == 2


def test_exception_detail_is_attached(notifier, qtbot):
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        notifier.notify("Callback Error", "failed", exc_info=sys.exc_info())

    qtbot.waitUntil(lambda: len(notifier.shown) == 1)
    title, msg, detail, severity = notifier.shown[0]
    assert "RuntimeError: boom" in detail
    assert severity == "error"


def test_instance_is_singleton(qapp):
    assert ErrorNotifier.instance() is ErrorNotifier.instance()
