"""Application bootstrap for YOLO Inspector."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from PyQt6.QtWidgets import QApplication

from .core.config import DEFAULT_CONFIG_PATH, ConfigManager

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command line options.

    Any folder given here overrides the one stored in the configuration
    and is remembered for the next start.
    """
    parser = argparse.ArgumentParser(
        prog="yolo-inspector",
        description="Review and correct YOLO bounding box labels",
    )
    parser.add_argument(
        "images",
        nargs="?",
        default=None,
        help="Images folder to open",
    )
    parser.add_argument(
        "--labels",
        default=None,
        help="Labels folder (defaults to the images folder)",
    )
    parser.add_argument(
        "--classes",
        default=None,
        help="classes.txt or data.yaml with class names",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Load the configuration and apply command line folder overrides.

    Returns:
        ConfigManager holding the effective configuration
    """
    manager = ConfigManager(args.config)
    overrides = {}
    if args.images:
        overrides["images_directory"] = str(Path(args.images).resolve())
    if args.labels:
        overrides["labels_directory"] = str(Path(args.labels).resolve())
    if args.classes:
        overrides["classes_file"] = str(Path(args.classes).resolve())
    if overrides:
        logger.info(f"Command line overrides: {overrides}")
        manager.update(**overrides)
    return manager


def create_application() -> QApplication:
    """
    Create and configure the Qt application.

    Returns:
        Configured QApplication instance
    """
    app = QApplication(sys.argv)
    app.setApplicationName("YOLO Inspector")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("YOLO Inspector")
    return app


def run(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the YOLO Inspector application.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    configure_logging(args.debug)
    logger.info("Starting YOLO Inspector")

    try:
        config_manager = load_config(args)
        app = create_application()

        from .ui.main_window import MainWindow

        window = MainWindow(config_manager)
        window.show()
        return app.exec()

    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Main entry point for the application."""
    sys.exit(run())


if __name__ == "__main__":
    main()
