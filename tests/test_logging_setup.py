import logging
import time
from pathlib import Path

import pytest

from sphereview.app import logging_setup
from sphereview.app.app_settings_manager import RunMode
from sphereview.utils.log_util import level_from_name, log_io


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Reset logging after each test so handlers don't leak between tests."""
    yield
    logging.shutdown()
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)


@pytest.fixture
def tmp_log_dir(tmp_path: Path):
    d = tmp_path / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture
def module(tmp_log_dir, monkeypatch):
    """logging_setup with default_log_dir pointed at a temporary directory."""
    monkeypatch.setattr(logging_setup, "default_log_dir", lambda app_name: tmp_log_dir)
    return logging_setup


def _read_text(path: Path) -> str:
    """Short retry in case the listener is still writing."""
    for _ in range(10):
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            time.sleep(0.02)
    return path.read_text(encoding="utf-8", errors="replace")


class _Settings:
    def __init__(self, run_mode, logging_level="INFO"):
        self.run_mode = run_mode
        self.logging_level = logging_level


def test_info_level_writes_file(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("sphereview", root_level=logging.INFO, console_level=logging.INFO)
    logger = logging.getLogger("sphereview.test")

    logger.debug("debug should NOT appear")
    logger.info("info should appear")
    logger.warning("warning should appear")
    logs.stop()

    log_file = tmp_log_dir / "sphereview.log"
    assert log_file.exists()

    text = _read_text(log_file)
    assert "info should appear" in text
    assert "warning should appear" in text
    assert "debug should NOT appear" not in text
    assert " INFO " in text
    assert "sphereview.test" in text


def test_debug_level_outputs_debug(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("sphereview", root_level=logging.DEBUG, console_level=logging.DEBUG)
    logger = logging.getLogger("sphereview.core.inertia")

    logger.debug("debug visible")
    logger.info("info visible")
    logs.stop()

    text = _read_text(tmp_log_dir / "sphereview.log")
    assert "debug visible" in text
    assert "info visible" in text


def test_level_from_environment(module, tmp_log_dir, monkeypatch):
    monkeypatch.setenv("SPHEREVIEW_LOG_LEVEL", "WARNING")
    logs = module.LogSystem("sphereview")
    logger = logging.getLogger("sphereview.env")

    logger.info("info hidden")
    logger.warning("warning shown")
    logs.stop()

    text = _read_text(tmp_log_dir / "sphereview.log")
    assert "info hidden" not in text
    assert "warning shown" in text


def test_queue_listener_flush_on_stop(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("sphereview", root_level=logging.INFO, console_level=logging.INFO)
    logger = logging.getLogger("sphereview.bulk")

    for i in range(200):
        logger.info("line %04d", i)

    logs.stop()
    # A second stop is a no-op.
    logs.stop()

    text = _read_text(tmp_log_dir / "sphereview.log")
    assert "line 0000" in text
    assert "line 0199" in text
    assert text.count("sphereview.bulk") == 200


def test_rotation_by_small_max_bytes(module, tmp_log_dir, monkeypatch):
    monkeypatch.setenv("SPHEREVIEW_LOG_BACKUP_COUNT", "2")
    orig_build = module.build_config

    def tiny_build_config(app_name, root_level=None, console_level=logging.INFO, log_dir=None):
        cfg = orig_build(app_name, root_level, console_level, log_dir)
        cfg["_file_settings"]["maxBytes"] = 1000
        return cfg

    monkeypatch.setattr(module, "build_config", tiny_build_config)

    logs = module.LogSystem.from_levels("sphereview", root_level=logging.INFO, console_level=logging.INFO)
    logger = logging.getLogger("sphereview.rotate")
    payload = "X" * 180
    for i in range(200):
        logger.info("i=%03d %s", i, payload)
    logs.stop()

    assert (tmp_log_dir / "sphereview.log").exists()
    assert (tmp_log_dir / "sphereview.log.1").exists()
    assert (tmp_log_dir / "sphereview.log.2").exists()
    assert not (tmp_log_dir / "sphereview.log.3").exists()
    assert "i=199" in _read_text(tmp_log_dir / "sphereview.log")


@pytest.mark.parametrize("mode, level, expected", [
    (RunMode.DEVELOPMENT, "ERROR", logging.DEBUG),
    (RunMode.VERBOSE, "ERROR", logging.DEBUG),
    (RunMode.PRODUCTION, "WARNING", logging.WARNING),
])
def test_apply_logging_policy(module, mode, level, expected):
    logs = module.LogSystem.from_levels("sphereview", root_level=logging.INFO, console_level=logging.INFO)
    try:
        module.apply_logging_policy(logs, _Settings(mode, level))
        assert logging.getLogger().level == logging.DEBUG
        assert logs._console_handler.level == expected
    finally:
        logs.stop()


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG),
    (" Warning ", logging.WARNING),
    ("30", 30),
    (logging.ERROR, logging.ERROR),
    ("chatty", logging.INFO),
    ("\u00b2", logging.INFO),
    (None, logging.INFO),
])
def test_level_from_name(value, expected):
    assert level_from_name(value) == expected


def test_log_io_records_arguments_and_result(caplog):
    caplog.set_level(logging.DEBUG, logger="sphereview")

    @log_io(logging.DEBUG, mask=("token",))
    def add(a, b, token=None):
        return a + b

    assert add(2, 3, token="secret") == 5
    assert "a=2, b=3, token=***" in caplog.text
    assert "= 5" in caplog.text
    assert "secret" not in caplog.text


def test_log_io_logs_and_reraises(caplog):
    @log_io()
    def fail():
        raise ValueError("nope")

    with pytest.raises(ValueError):
        fail()
    assert "Exception in" in caplog.text


def test_crash_handlers_log_uncaught_exceptions(module, tmp_log_dir, monkeypatch):
    enabled = []
    monkeypatch.setattr(module.faulthandler, "enable", lambda file: enabled.append(file))
    monkeypatch.setattr(module.sys, "excepthook", module.sys.excepthook)

    logs = module.LogSystem.from_levels("sphereview", root_level=logging.INFO, console_level=logging.INFO)
    paths = module.install_crash_handlers("sphereview")
    assert paths.crash_file == tmp_log_dir / "sphereview.crash.log"
    assert len(enabled) == 1

    try:
        raise RuntimeError("kaboom")
    except RuntimeError as e:
        module.sys.excepthook(type(e), e, e.__traceback__)
    logs.stop()
    enabled[0].close()

    text = _read_text(paths.log_file)
    assert "Uncaught exception" in text
    assert "RuntimeError: kaboom" in text
