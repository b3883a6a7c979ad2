"""Config store: env plus an optional config file that is master over env."""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON config file to a flat dict. Returns {} when absent or unusable."""
    if not path.exists():
        logger.debug("Config file not found: %s (optional; using env/defaults)", path)
        return {}
    try:
        raw = path.read_text()
    except OSError as e:
        logger.warning("Could not read config file %s: %s", path, e)
        return {}
    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(raw)
        elif suffix == ".json":
            data = json.loads(raw)
        else:
            logger.warning("Config file must be .yaml, .yml, or .json: %s", path)
            return {}
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file must contain a mapping; got %s", type(data).__name__)
        return {}
    # keys in the file follow env names (WEBHOOK_SECRET) or field names (webhook_secret)
    return {str(k).lower(): v for k, v in data.items()}


class ConfigStore:
    """
    Holds the current Settings built from layered sources.
    Precedence: config file > env/.env > field defaults.
    """

    def __init__(self, settings_cls: type, config_file_path: Optional[str] = None):
        self._settings_cls = settings_cls
        self._file_path: Optional[Path] = None
        if config_file_path:
            self._file_path = Path(config_file_path).expanduser().resolve()
        self._current: Optional[Any] = None
        self._lock = threading.RLock()

    def _layers(self) -> dict[str, Any]:
        env_dict = self._settings_cls().model_dump()
        file_dict = read_config_file(self._file_path) if self._file_path else {}
        if file_dict:
            logger.info("Loaded config file (master over env): %s", self._file_path)
        return {**env_dict, **file_dict}

    def load_initial(self) -> None:
        """Build settings from all layers. Invalid file values fail loudly at startup."""
        with self._lock:
            self._current = self._settings_cls(**self._layers())

    def get_settings(self) -> Any:
        with self._lock:
            if self._current is None:
                self.load_initial()
            return self._current

