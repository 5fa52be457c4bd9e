"""Settings for the device class reader, loaded with Dynaconf.

One YAML file holds three sections: ``logger`` (see AppLogger.configure),
``snmp`` (transport defaults for PysnmpSession) and ``request`` (the overall
deadline of one read). Any key can be overridden from the environment with
the ``DEVCLASS_`` prefix, e.g. ``DEVCLASS_SNMP__COMMUNITY=private``.
"""

from pathlib import Path
from threading import Lock
from typing import Any, Optional

from dynaconf import Dynaconf, Validator

DEFAULT_CONFIG_NAME = "devclass_config.yaml"
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

VALIDATORS = [
    Validator("logger.level", default="INFO", condition=lambda v: str(v).upper() in LOG_LEVELS),
    Validator("snmp.community", default="public"),
    Validator("snmp.version", default="2c", is_in=("1", "2c", 1)),
    Validator("snmp.port", default=161, is_type_of=int, gte=1, lte=65535),
    Validator("snmp.timeout", default=1.0, gt=0),
    Validator("snmp.retries", default=3, is_type_of=int, gte=0),
    Validator("snmp.max_walk_iterations", default=10000, is_type_of=int, gt=0),
    Validator("request.timeout", default=60, gte=0),
]


def resolve_config_path(config_path: str) -> Path:
    """Locate the settings file; the bare default name prefers ``data/``."""
    path = Path(config_path)
    if config_path == DEFAULT_CONFIG_NAME:
        data_path = Path("data") / DEFAULT_CONFIG_NAME
        if data_path.exists():
            path = data_path
    if not path.exists():
        raise FileNotFoundError(f"Config file {path} not found")
    return path


class AppConfig:
    """Process-wide settings; the first construction decides the file."""

    _instance: Optional["AppConfig"] = None
    _lock = Lock()

    settings: Dynaconf
    path: Path

    def __new__(cls, config_path: str = DEFAULT_CONFIG_NAME) -> "AppConfig":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._load(resolve_config_path(config_path))
                cls._instance = instance
            return cls._instance

    def _load(self, path: Path) -> None:
        self.path = path
        self.settings = Dynaconf(
            settings_files=[str(path)],
            environments=False,
            envvar_prefix="DEVCLASS",
            validators=VALIDATORS,
        )
        # Dynaconf is lazy; force the read so a bad file fails here
        self.settings.validators.validate()

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings so the next construction reads a file again."""
        with cls._lock:
            cls._instance = None

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted keys reach into sections: ``get("snmp.port")``."""
        return self.settings.get(key, default)

    def reload(self) -> None:
        self.settings.reload()
        self.settings.validators.validate()
