#!/usr/bin/env python
"""
Playze Map Tools - Main Entry Point
"""

import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from PySide6.QtWidgets import QApplication
from playze.ui.main_window import MainWindow
from loguru import logger


def main():
    """Main application entry point"""
    # Configure logging
    logger.add("playze_map.log", rotation="10 MB", level="DEBUG")
    logger.info("Starting Playze Map Tools")

    # Create Qt application
    app = QApplication(sys.argv)
    app.setApplicationName("Playze Map Tools")
    app.setOrganizationName("Playze")

    # Create and show main window
    window = MainWindow()
    window.show()

    # Run application
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
