from __future__ import annotations

import faulthandler
import logging
import logging.config
import os
import queue
import sys
import traceback
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from sphereview.app.app_settings_manager import AppSettingsManager, RunMode
from sphereview.utils.log_util import level_from_name

LOG_FORMAT = "%(asctime)s.%(msecs)03dZ %(levelname)s %(process)d %(threadName)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogPaths:
    log_file: Path
    crash_file: Path
    log_dir: Path


def install_crash_handlers(app_name: str, log_dir: Path | None = None) -> LogPaths:
    """
    Crash diagnostics for the GUI process.

    faulthandler dumps native crashes to `<app>.crash.log` and uncaught
    Python exceptions go to the root logger. Install after `LogSystem` so
    the records end up in the log file.
    """
    log_dir = log_dir or default_log_dir(app_name)
    log_file = log_dir / f"{app_name}.log"
    crash_file = log_dir / f"{app_name}.crash.log"

    root = logging.getLogger()
    try:
        f = open(crash_file, "w", encoding="utf-8")
        faulthandler.enable(file=f)
        # faulthandler only keeps the file descriptor.
        root._sphereview_crash_fh = f
    except OSError:
        logger.warning("Crash log unavailable: %s", crash_file)

    def _excepthook(exc_type, exc, tb):
        logger.critical(
            "Uncaught exception: \n%s",
            "".join(traceback.format_exception(exc_type, exc, tb)),
        )

    sys.excepthook = _excepthook

    logger.info("%s starting: frozen=%s executable=%s cwd=%s",
                app_name, getattr(sys, "frozen", False), sys.executable, os.getcwd())
    logger.info("log_file=%s crash_file=%s", log_file, crash_file)
    return LogPaths(log_file=log_file, crash_file=crash_file, log_dir=log_dir)


def default_log_dir(app_name: str) -> Path:
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Logs" / app_name
    else:
        base = Path.home() / f".{app_name.lower()}" / "logs"
    base.mkdir(parents=True, exist_ok=True)
    return base


def build_config(app_name: str,
                 root_level: int | str | None = None,
                 console_level: int | str = logging.INFO,
                 log_dir: Path | None = None) -> dict:
    """
    Build a logging config dict.

    The `_file_settings` entry is not part of the dictConfig schema; it
    describes the rotating file written by the queue listener.
    """
    if root_level is None:
        root_level = os.getenv("SPHEREVIEW_LOG_LEVEL", "INFO")
    root_level = level_from_name(root_level)
    console_level = level_from_name(console_level)
    log_dir = log_dir or default_log_dir(app_name)
    log_file = str(log_dir / f"{app_name}.log")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "standard", "level": console_level},
        },
        "root": {"level": root_level, "handlers": ["console"]},
        "_file_settings": {
            "filename": log_file,
            "maxBytes": 1024 * 1024 * 5,
            "backupCount": int(os.getenv("SPHEREVIEW_LOG_BACKUP_COUNT", 5)),
            "encoding": "utf-8",
            "format": LOG_FORMAT,
            "datefmt": LOG_DATEFMT,
        },
    }


class LogSystem:
    """Thin wrapper owning the QueueListener that writes the log file."""

    def __init__(self, app_name: str, level: int | str | None = None,
                 console_level: int | str = logging.INFO):
        cfg = build_config(app_name, level, console_level)
        file_settings = cfg.pop("_file_settings")
        logging.config.dictConfig(cfg)

        root_logger = logging.getLogger()
        self._console_handler: logging.Handler | None = None
        for h in root_logger.handlers:
            if isinstance(h, logging.StreamHandler):
                self._console_handler = h
                break

        # Records are queued on the caller's thread and written by the listener.
        self._queue: queue.Queue = queue.Queue(-1)
        self._queue_handler = QueueHandler(self._queue)
        root_logger.addHandler(self._queue_handler)

        self._file_handler = RotatingFileHandler(
            file_settings["filename"],
            maxBytes=file_settings["maxBytes"],
            backupCount=file_settings["backupCount"],
            encoding=file_settings["encoding"],
        )
        self._file_handler.setFormatter(logging.Formatter(file_settings["format"], file_settings["datefmt"]))

        self.listener = QueueListener(self._queue, self._file_handler, respect_handler_level=True)
        self.listener.start()
        self._stopped = False

    @classmethod
    def from_levels(cls, app_name: str, root_level: int | str, console_level: int | str) -> LogSystem:
        return cls(app_name, level=root_level, console_level=console_level)

    def apply_levels(self, root_level: int, console_level: int | None = None, file_level: int | None = None) -> None:
        """Update levels after startup."""
        logging.getLogger().setLevel(root_level)
        if self._console_handler is not None and console_level is not None:
            self._console_handler.setLevel(console_level)
        if file_level is not None:
            self._file_handler.setLevel(file_level)

    def stop(self) -> None:
        """Flush queued records and close the file. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True
        self.listener.stop()
        logging.getLogger().removeHandler(self._queue_handler)
        self._file_handler.close()


def apply_logging_policy(logs: LogSystem, settings: AppSettingsManager) -> None:
    """Switch log levels according to the run mode."""
    mode = getattr(settings, "run_mode", None) or RunMode.PRODUCTION

    if mode in (RunMode.DEVELOPMENT, RunMode.VERBOSE):
        root = logging.DEBUG
        console = logging.DEBUG
    else:
        root = logging.DEBUG
        console = level_from_name(getattr(settings, "logging_level", "INFO"))

    logs.apply_levels(root_level=root, console_level=console, file_level=logging.DEBUG)


def install_qt_message_handler() -> None:
    from PySide6.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = logging.getLogger("Qt")
    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def handler(msg_type, context, message):
        qt_logger.log(levels.get(msg_type, logging.ERROR), message)

    qInstallMessageHandler(handler)
    qt_logger.info("Qt message handler installed.")
