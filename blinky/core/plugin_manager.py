import importlib
import logging
import pkgutil
from typing import Any, List


class PluginManager:
    def __init__(self, app: Any):
        self.app = app
        self.plugins: List[str] = []
        self.logger = logging.getLogger(__name__)

    def discover_plugins(self, plugin_package: str = "blinky.plugins") -> None:
        """Import every plugin package and let it register its background tasks"""
        package = importlib.import_module(plugin_package)
        self.logger.info(f"Discovering plugins in package: {plugin_package}")

        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg:
                continue
            module = importlib.import_module(f"{plugin_package}.{name}")
            self.logger.debug(f"Found plugin module: {name}")
            self.plugins.append(name)
            if hasattr(module, "register_tasks"):
                module.register_tasks(self.app)
                self.logger.info(f"Registered tasks from plugin: {name}")
