"""
Configuration management for the STF exporter.

Loads format constants, extraction rules and IFC property mappings from
JSON files.
"""

import json
from pathlib import Path
from typing import Dict, List, Any, Optional
from loguru import logger

from stfexport.core.models import WindowPositionMode

DEFAULT_CONFIG_PATH = Path(__file__).parent / "stf_defaults.json"

COLLISION_POLICIES = ("reject", "last_wins")


class Config:
    """Configuration manager for export settings."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to JSON config file. If None, uses the bundled defaults.
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = json.load(f)

        logger.info(f"Loaded config: {self._config.get('name', 'Unknown')}")

    def get_format_setting(self, name: str, default: Any = None) -> Any:
        """
        Get an STF format constant.

        Args:
            name: Setting name ('stf_version', 'program_name', ...)
            default: Default value if not found

        Returns:
            Setting value or default
        """
        return self._config.get("format", {}).get(name, default)

    def get_extraction_rule(self, name: str, default: Any = None) -> Any:
        """
        Get an extraction rule value.

        Args:
            name: Rule name ('lamp_count_fallback', 'window_position_mode', ...)
            default: Default value if not found

        Returns:
            Rule value or default
        """
        return self._config.get("extraction", {}).get(name, default)

    def get_property_names(self, field: str) -> List[str]:
        """Candidate IFC property names for a field, in priority order."""
        mapping = self._config.get("ifc_properties", {}).get("property_names", {})
        return mapping.get(field, [])

    def get_ifc_default(self, name: str, default: Any = None) -> Any:
        return self._config.get("ifc_properties", {}).get("defaults", {}).get(name, default)

    def get_ifc_unit(self, field: str, default: str = "") -> str:
        return self._config.get("ifc_properties", {}).get("units", {}).get(field, default)

    @property
    def stf_version(self) -> str:
        return str(self.get_format_setting("stf_version", "1.0.5"))

    @property
    def window_position_mode(self) -> WindowPositionMode:
        return WindowPositionMode(self.get_extraction_rule("window_position_mode", "basis_x"))

    @property
    def collision_policy(self) -> str:
        policy = self.get_extraction_rule("catalog_collision_policy", "reject")
        if policy not in COLLISION_POLICIES:
            raise ValueError(
                f"Unknown catalog collision policy '{policy}' "
                f"(expected one of {', '.join(COLLISION_POLICIES)})"
            )
        return policy


# Global default config instance
_default_config: Optional[Config] = None


def get_default_config() -> Config:
    """Get the default global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = Config()
    return _default_config


def load_config(config_path: str) -> Config:
    """
    Load configuration from a specific file.

    Args:
        config_path: Path to JSON config file

    Returns:
        Config instance
    """
    return Config(config_path)
