import yaml
from pathlib import Path
import os
from typing import Any, Dict, List, Optional
import copy
import logging
import re

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 4000,
        "cors_origins": ["*"],
    },
    "database": {
        "path": "~/.blinky/blinky.db",
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
    "ai": {
        "api_key": "${ANTHROPIC_API_KEY}",
        "model": "claude-3-5-haiku-latest",
        "timeout": 20,
        "max_retries": 1,
    },
    "push": {
        "api_url": "https://exp.host/--/api/v2/push/send",
        "access_token": "${EXPO_ACCESS_TOKEN}",
        "timeout": 15,
        "batch_size": 100,
    },
    "reminders": {
        "enable": True,
        "interval_seconds": 60,
        "title": "📚 Assignment Reminder",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay override onto a copy of base."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


_ENV_LINE = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$')
_ENV_REF = re.compile(r'^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$|^\$([A-Za-z_][A-Za-z0-9_]*)$')


def load_env_file(env_file: Path) -> List[str]:
    """Export KEY=VALUE lines into os.environ without overriding variables already set. Returns the keys set."""
    loaded = []
    for raw in env_file.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        match = _ENV_LINE.match(line)
        if not match:
            logging.debug(f"Ignoring malformed .env line in {env_file}")
            continue
        key, value = match.group(1), match.group(2).strip().strip('"').strip("'")
        if key not in os.environ:
            os.environ[key] = value
            loaded.append(key)
    return loaded


def substitute_env_vars(data: Any) -> Any:
    """Replace "${VAR}" / "$VAR" string values with the environment value; unset or empty becomes None."""
    if isinstance(data, dict):
        return {key: substitute_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    if isinstance(data, str):
        match = _ENV_REF.match(data)
        if match:
            return os.environ.get(match.group(1) or match.group(2)) or None
    return data


class Config:
    """YAML settings overlaid on DEFAULT_CONFIG; data holds the merged, env-substituted result."""

    def __init__(self, config_path: Optional[str] = None):
        if config_path:
            self.config_file = Path(config_path).expanduser().resolve()
        else:
            self.config_file = Path.cwd() / "config.yaml"
        self.config_dir = self.config_file.parent
        logging.debug(f"Using config file: {self.config_file}")

        self._load_env_file()
        self._ensure_config_exists()
        self.data = self._load_config()

    def _ensure_config_exists(self) -> None:
        """Write the default config on first run"""
        if self.config_file.exists():
            return
        logging.info(f"Creating default config file: {self.config_file}")
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(yaml.dump(DEFAULT_CONFIG, allow_unicode=True, sort_keys=False))

    def _load_env_file(self) -> None:
        """Load the first .env found next to the config, one level up, or in the working directory"""
        candidates = [self.config_dir / ".env", self.config_dir.parent / ".env", Path.cwd() / ".env"]
        env_file = next((path for path in candidates if path.is_file()), None)
        if env_file is None:
            logging.debug("No .env file found, skipping environment variable loading")
            return
        try:
            loaded = load_env_file(env_file)
        except OSError as e:
            logging.warning(f"Error loading .env file {env_file}: {e}")
            return
        logging.info(f"Loaded {len(loaded)} environment variable(s) from {env_file}")

    def _load_config(self) -> Dict[str, Any]:
        """Read the YAML file and overlay it on the defaults; fall back to defaults if it is unreadable"""
        try:
            with open(self.config_file) as f:
                file_data = yaml.safe_load(f) or {}
            if not isinstance(file_data, dict):
                raise ValueError("Invalid config format: root must be a dictionary")
            data = _merge(DEFAULT_CONFIG, file_data)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logging.error(f"Error loading config {self.config_file}: {e}")
            logging.info("Using default configuration")
            data = copy.deepcopy(DEFAULT_CONFIG)

        data = substitute_env_vars(data)
        log_file = (data.get("logging") or {}).get("file")
        if log_file:
            data["logging"]["file"] = os.path.expanduser(log_file)
        return data

    def get_section(self, name: str) -> Dict[str, Any]:
        """Config for a top-level section (empty dict if absent)"""
        section = self.data.get(name)
        return section if isinstance(section, dict) else {}
