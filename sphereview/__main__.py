"""
Demo application.

    python -m sphereview                      # interactive window
    python -m sphereview --snapshot out.png   # headless render of one layout pass
"""
from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)

DEMO_ELEMENT_COUNT = 100
DEMO_RADIUS = 150.0
DEMO_SENSITIVITY = 0.005
DEMO_ELEMENT_SIZE = 50


def _parse_size(text: str) -> tuple[int, int]:
    try:
        width, height = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {text!r}")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sphereview", description="Elements laid out on a rotatable sphere.")
    parser.add_argument("--count", type=int, default=DEMO_ELEMENT_COUNT, help="number of elements")
    parser.add_argument("--radius", type=float, default=DEMO_RADIUS, help="initial sphere radius")
    parser.add_argument("--sensitivity", type=float, default=DEMO_SENSITIVITY, help="radians per pixel of drag")
    parser.add_argument("--size", type=_parse_size, default=(400, 800), help="viewport size, WIDTHxHEIGHT")
    parser.add_argument("--snapshot", metavar="PATH", help="render one layout pass to PATH and exit")
    parser.add_argument("--fling", type=float, nargs=2, metavar=("VX", "VY"),
                        help="with --snapshot: release a pan at this velocity and let it come to rest first")
    return parser


def run_snapshot(args: argparse.Namespace) -> int:
    from sphereview.core.inertia import ManualTickScheduler
    from sphereview.core.sphere_view import SphereViewController
    from sphereview.ui.snapshot import render_layout

    scheduler = ManualTickScheduler()
    controller = SphereViewController(
        scheduler,
        element_count=args.count,
        viewport_size=args.size,
        radius=args.radius,
        sensitivity=args.sensitivity,
    )
    if args.fling:
        controller.on_pan_end(*args.fling)
        ticks = scheduler.run_until_idle()
        logger.info("Fling settled after %d ticks", ticks)

    render_layout(controller.recompute_layout(), controller.viewport_size, args.snapshot,
                  element_size=DEMO_ELEMENT_SIZE)
    return 0


def run_gui(args: argparse.Namespace) -> int:
    from PySide6 import QtWidgets
    from PySide6.QtCore import Qt

    from sphereview.app.app_settings_manager import AppSettingsManager
    from sphereview.app.logging_setup import (
        LogSystem, apply_logging_policy, install_crash_handlers, install_qt_message_handler,
    )
    from sphereview.ui.error_notifier import ErrorNotifier
    from sphereview.ui.mainwindow import MainWindow

    logs = LogSystem("sphereview")
    install_crash_handlers("sphereview")
    install_qt_message_handler()

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv)

    settings_mgr = AppSettingsManager()
    apply_logging_policy(logs, settings_mgr)
    ErrorNotifier.configure(settings_mgr)

    window = MainWindow(settings_mgr, radius=args.radius)
    window.sphere.controller.set_sensitivity(args.sensitivity)
    elements = []
    for i in range(args.count):
        element = QtWidgets.QLabel(str(i))
        element.setAlignment(Qt.AlignCenter)
        element.resize(DEMO_ELEMENT_SIZE, DEMO_ELEMENT_SIZE)
        element.setStyleSheet(
            f"background-color: orange; border-radius: {DEMO_ELEMENT_SIZE // 2}px; color: white;"
        )
        elements.append(element)
    window.add_elements(elements)
    window.resize(*args.size)
    window.show()

    app.aboutToQuit.connect(logs.stop)
    logger.info("App start: %d elements", args.count)
    try:
        rc = app.exec()
        logger.info("App exit (rc=%s)", rc)
        return rc
    finally:
        logs.stop()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.snapshot:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        return run_snapshot(args)

    return run_gui(args)


if __name__ == "__main__":
    sys.exit(main())
