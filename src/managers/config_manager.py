"""
Config Manager

Loads the application configuration from YAML with include system support
and falls back to factory defaults when the main file cannot be read.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Union

from models.config import AppConfig
from models.enums import LogCategory
from utils.errors import ConfigError
from utils.logger import configure_logger, get_logger

log = get_logger().for_category(LogCategory.CONFIG)

PathLike = Union[str, Path]


class ConfigManager:
    """
    Main configuration manager with include system support

    Loads config.yaml and processes the include: directive to merge modular
    YAML files in order.

    Example:
        config = ConfigManager()
        app = config.load()
        config.apply_logging()

        engine = DocumentEngine(history_limit=app.editor.history_limit)
    """

    def __init__(self, config_path: PathLike = "config/config.yaml", defaults_path: PathLike = "config/factory_defaults.yaml"):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to main config.yaml (relative to src/ unless absolute)
            defaults_path: Path to factory defaults fallback
        """
        self.config_path = Path(config_path)
        self.factory_defaults_path = Path(defaults_path)
        self.data: Dict[str, Any] = {}
        self.config = AppConfig()
        self.used_defaults = False

    def load(self) -> AppConfig:
        """
        Load YAML configuration with include system support

        Process:
        1. Load main config.yaml
        2. If it has 'include:' list, load and merge those files
        3. Otherwise treat as monolithic config
        4. Fallback to factory defaults on failure

        Returns:
            AppConfig built from the merged data

        Raises:
            ConfigError: Neither config.yaml nor the factory defaults could be read
        """
        src_dir = Path(__file__).parent.parent
        full_path = src_dir / self.config_path

        try:
            main_config = self._read_yaml(full_path)

            if "include" in main_config:
                log.info("Using include-based configuration")
                merged = self._load_with_includes(main_config["include"], full_path.parent)
                for key, value in main_config.items():
                    if key != "include":
                        merged[key] = value
                self.data = merged
            else:
                log.info("Using monolithic configuration")
                self.data = main_config
            self.used_defaults = False

        except (OSError, yaml.YAMLError, ValueError) as ex:
            log.error("Failed to load config.yaml", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")

            defaults_path = src_dir / self.factory_defaults_path
            try:
                self.data = self._read_yaml(defaults_path)
            except (OSError, yaml.YAMLError, ValueError) as defaults_ex:
                raise ConfigError(f"Cannot load factory defaults: {defaults_ex}") from defaults_ex
            self.used_defaults = True

        self.config = AppConfig.from_dict(self.data)
        log.debug("Configuration ready", sections=str(list(self.data.keys())))
        return self.config

    def apply_logging(self) -> None:
        """Configure the logger singleton from the loaded logging section."""
        logging_config = self.config.logging
        configure_logger(logging_config.log_level, logging_config.use_colors)
        log.debug("Logger configured", level=logging_config.log_level.name)

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{path.name}: expected a mapping at top level")
        return data

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict[str, Any]:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: List of filenames to load (e.g., ["editor.yaml", "playback.yaml"])
            config_dir: Directory containing config files

        Returns:
            Merged config dict (later files win per top-level key)
        """
        merged: Dict[str, Any] = {}

        for filename in include_list:
            filepath = config_dir / filename
            try:
                file_data = self._read_yaml(filepath)
            except FileNotFoundError:
                log.error(f"File not found: {filename}")
                raise
            if file_data:
                merged.update(file_data)
                log.info(f"Loaded {filename}", keys=str(list(file_data.keys())))

        log.info("Config merge complete", total_keys=len(merged), keys=str(list(merged.keys())[:10]))
        return merged
