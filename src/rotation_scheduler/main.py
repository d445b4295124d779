"""
Main Entry Point for the Rotation Scheduler

Wires the settings store, scheduler, exporters and window together and
provides logging setup and global error handling.
"""

import importlib.util
import sys
import logging
from pathlib import Path
from datetime import datetime
from tkinter import messagebox

from rotation_scheduler.data_manager import DataManager, DataManagerError
from rotation_scheduler.scheduler_logic import RotationScheduler
from rotation_scheduler.reporting import ExportManager


def setup_logging():
    """Setup application logging"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_file = log_dir / f"rotation_scheduler_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


REQUIRED_MODULES = ("customtkinter", "pandas", "openpyxl", "reportlab")


def check_dependencies():
    """Raise ImportError naming every required module that cannot be found"""
    missing_modules = [name for name in REQUIRED_MODULES if importlib.util.find_spec(name) is None]
    if missing_modules:
        raise ImportError(
            f"Missing required dependencies: {', '.join(missing_modules)}\n"
            "Please install them using: pip install -e ."
        )


def show_error(title: str, message: str):
    """Show an error dialog, logging instead when no display is available"""
    try:
        messagebox.showerror(title, message)
    except Exception:
        logging.getLogger(__name__).debug(f"No display available for the error dialog: {message}")


def handle_exception(exc_type, exc_value, exc_traceback):
    """Global exception handler"""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logging.getLogger(__name__).error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback)
    )
    show_error("Application Error", f"An unexpected error occurred:\n\n{exc_type.__name__}: {exc_value}")


class RotationSchedulerApp:
    """Main application class"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.data_manager = None
        self.scheduler = None
        self.export_manager = None
        self.main_window = None

    def initialize(self):
        """Initialize application components"""
        try:
            self.logger.info("Initializing Rotation Scheduler Application")

            check_dependencies()
            self.logger.info("All dependencies available")

            if getattr(sys, 'frozen', False):
                # Bundled executable (e.g. PyInstaller)
                base_path = Path(sys.executable).parent
            else:
                base_path = Path(__file__).parent.parent

            data_dir = base_path / "data"
            data_dir.mkdir(exist_ok=True)
            self.logger.info(f"Settings directory: {data_dir}")

            self.data_manager = DataManager(str(data_dir / "settings.json"))
            self.scheduler = RotationScheduler()
            self.export_manager = ExportManager()
            self.logger.info("Components initialized")

            return True

        except (ImportError, OSError, DataManagerError) as e:
            self.logger.error(f"Failed to initialize application: {e}", exc_info=True)
            return False

    def run(self):
        """Run the main application"""
        if not self.initialize():
            show_error("Initialization Error",
                       "Failed to initialize Rotation Scheduler. See the logs directory for details.")
            return False

        try:
            # Imported late so a missing display only affects the GUI path
            from rotation_scheduler.ui import MainWindow

            self.logger.info("Starting GUI application")
            self.main_window = MainWindow(
                data_manager=self.data_manager,
                scheduler=self.scheduler,
                export_manager=self.export_manager
            )
            self.main_window.mainloop()

            self.logger.info("Application closed normally")
            return True

        except Exception as e:
            self.logger.error(f"Application error: {e}", exc_info=True)
            show_error("Runtime Error", f"{type(e).__name__}: {e}")
            return False

        finally:
            self.cleanup()

    def cleanup(self):
        """Persist settings on exit"""
        if not self.data_manager:
            return
        try:
            self.data_manager.save_data()
        except DataManagerError as e:
            self.logger.error(f"Error during cleanup: {e}")


def main():
    """Main entry point"""
    sys.excepthook = handle_exception

    logger = setup_logging()
    logger.info("Starting Rotation Scheduler")

    app = RotationSchedulerApp()
    success = app.run()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
