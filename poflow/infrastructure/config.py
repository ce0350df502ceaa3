"""Module for the Config class."""
import logging
import logging.config
import os
from pathlib import Path
from typing import Any

import yaml

from poflow.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("poflow.yml", "poflow.yaml")
GETTEXT_PATH_ENV = "GETTEXT_PATH"
CATALOG_NAME = "default"


class Config:
    """A class to store the configuration."""

    def __init__(self) -> None:
        self.gettext_path: Path | None = None
        self.logging_config: dict[str, Any] | None = None
        self.config_path: Path | None = None

    @staticmethod
    def discover(cwd: Path | None = None, home: Path | None = None) -> Path | None:
        """Find the configuration file to use.

        ``poflow.yml`` (or ``poflow.yaml``) in the working directory wins over
        ``~/.config/poflow/config.yml``.
        """
        cwd = cwd or Path.cwd()
        candidates = [cwd / name for name in CONFIG_FILE_NAMES]
        home = home or Path.home()
        candidates.append(home / ".config" / "poflow" / "config.yml")
        return next((path for path in candidates if path.is_file()), None)

    def __parse_yaml(self, yaml_path: Path) -> None:
        """Parse a YAML configuration file."""
        with open(yaml_path, encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}
        if gettext_path := config.get("gettext_path"):
            self.gettext_path = Path(gettext_path)
        self.logging_config = config.get("logging")

    def parse(self, config_path: Path) -> None:
        """Parse a configuration file."""
        if config_path.suffix in (".yaml", ".yml"):
            self.__parse_yaml(config_path)
            self.config_path = config_path
        else:
            raise ValueError(f"Unsupported file format: '{config_path.suffix}'")

    def apply_environment(self) -> None:
        """Let the environment override values read from the file."""
        if gettext_path := os.environ.get(GETTEXT_PATH_ENV):
            self.gettext_path = Path(gettext_path)

    def setup_logging(self) -> None:
        """Configure logging from the ``logging`` section.

        Without a section, or when it is invalid, warnings and errors are
        written to stderr.
        """
        if self.logging_config is not None:
            try:
                logging.config.dictConfig(self.logging_config)
                return
            except (ValueError, TypeError, AttributeError, ImportError) as e:
                logging.basicConfig(level=logging.WARNING, format="%(message)s")
                logger.warning("Invalid logging configuration, using defaults: %s", e)
                return
        logging.basicConfig(level=logging.WARNING, format="%(message)s")

    def _require_gettext_path(self) -> Path:
        if self.gettext_path is None:
            raise ConfigError("gettext_path not set in config file")
        return self.gettext_path

    def resolve_po_path(self, language: str) -> Path:
        """Return ``{gettext_path}/{language}/LC_MESSAGES/default.po``."""
        gettext_path = self._require_gettext_path()
        if not language:
            raise ConfigError("language code is required")
        return gettext_path / language / "LC_MESSAGES" / f"{CATALOG_NAME}.po"

    def resolve_pot_path(self) -> Path:
        """Return ``{gettext_path}/default.pot``."""
        return self._require_gettext_path() / f"{CATALOG_NAME}.pot"

    def find_po_files(self) -> list[Path]:
        """Return every ``.po`` file under the gettext directory, sorted."""
        gettext_path = self._require_gettext_path()
        if not gettext_path.is_dir():
            raise ConfigError(f"gettext directory not found: {gettext_path}")
        return sorted(path for path in gettext_path.rglob("*.po") if path.is_file())

    def find_pot_file(self) -> Path | None:
        """Return the template path if the template exists."""
        pot_path = self.resolve_pot_path()
        return pot_path if pot_path.is_file() else None
