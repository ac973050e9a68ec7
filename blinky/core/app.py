import logging
import sys
from typing import Any, Dict, Optional

from .config import Config
from .db import close_db, init_db
from .plugin_manager import PluginManager
from .task_manager import TaskManager


class BlinkyApp:
    """Holds config, scheduler, composer and dispatcher; shared by the HTTP layer and background tasks."""

    def __init__(self, config_path: Optional[str] = None, composer: Any = None, dispatcher: Any = None):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path)
        self._setup_logging()

        # Initialize database (before plugins so tables exist)
        init_db(self.config.data)

        from blinky.plugins.composer import build_composer
        from blinky.plugins.push import build_dispatcher

        self.task_manager = TaskManager()
        self.composer = composer or build_composer(self.config.data)
        self.dispatcher = dispatcher or build_dispatcher(self.config.data)

        self.plugin_manager = PluginManager(self)
        self.plugin_manager.discover_plugins()

    def _setup_logging(self) -> None:
        """Configure logging to write to stdout and, when logging.file is set, to a file"""
        log_config: Dict[str, Any] = self.config.get_section("logging")
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(log_config.get("level") or "INFO").upper(), logging.INFO))

        # Create formatter with line numbers
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        log_file = log_config.get("file")
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Blinky server starting...")

    def run(self) -> None:
        """Start the reminder loop and serve HTTP until interrupted."""
        from blinky.api import run_api_server

        try:
            self.task_manager.start()
            run_api_server(self)
        finally:
            self.task_manager.stop()
            close_db()
            logging.info("Blinky server stopped")
