"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables
  2. Project config (.influence/config.yaml)
  3. User config (~/.influence/config.yaml)
  4. Defaults
"""

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .core.records import CHARACTER_TYPE


LOG_LEVELS = ("debug", "info", "warning", "error")

DEFAULT_INFLUENCE_LIMIT = 6


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class IndexConfig:
    """Influence index behaviour."""
    character_type: str = CHARACTER_TYPE  # only records of this type join the graph
    symmetry: bool = True                 # mirror edits onto the paired sheet
    influence_limit: int = DEFAULT_INFLUENCE_LIMIT

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not self.character_type:
            return "character_type must not be empty"
        if not isinstance(self.influence_limit, int) or self.influence_limit < 1:
            return f"influence_limit must be a positive integer, got '{self.influence_limit}'"
        return None


@dataclass
class LoggingConfig:
    """Log output preferences."""
    level: str = "warning"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.level not in LOG_LEVELS:
            return f"Unknown log level '{self.level}'. Valid: {', '.join(LOG_LEVELS)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    index: IndexConfig = field(default_factory=IndexConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Flattened view used by the index service
    @property
    def character_type(self) -> str:
        return self.index.character_type

    @property
    def symmetry(self) -> bool:
        return self.index.symmetry

    def validate(self) -> Optional[str]:
        return self.index.validate() or self.logging.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "index": {
                "character_type": self.index.character_type,
                "symmetry": self.index.symmetry,
                "influence_limit": self.index.influence_limit
            },
            "logging": {
                "level": self.logging.level
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        index_data = data.get("index") or {}
        logging_data = data.get("logging") or {}

        return cls(
            index=IndexConfig(
                character_type=index_data.get("character_type", CHARACTER_TYPE),
                symmetry=_as_bool(index_data.get("symmetry", True)),
                influence_limit=_as_int(index_data.get("influence_limit"), DEFAULT_INFLUENCE_LIMIT)
            ),
            logging=LoggingConfig(
                level=str(logging_data.get("level", "warning")).lower()
            )
        )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment (INFLUENCE_*)
      2. Project config (.influence/config.yaml)
      3. User config (~/.influence/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".influence"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".influence"
    PROJECT_CONFIG_FILE = "config.yaml"

    ENV_OVERRIDES = {
        "INFLUENCE_CHARACTER_TYPE": ("index", "character_type"),
        "INFLUENCE_SYMMETRY": ("index", "symmetry"),
        "INFLUENCE_LOG_LEVEL": ("logging", "level"),
    }

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        # Start with defaults
        config_data: Dict[str, Any] = {}

        # Layer 1: User config, then project config (higher priority)
        for path in (self.user_config_path, self.project_config_path):
            if path.exists():
                try:
                    with open(path) as f:
                        config_data = self._merge(config_data, yaml.safe_load(f) or {})
                except (yaml.YAMLError, OSError, AttributeError):
                    pass  # Ignore malformed config file

        # Layer 2: Environment overrides
        for env_key, (section, setting) in self.ENV_OVERRIDES.items():
            if os.environ.get(env_key):
                config_data.setdefault(section, {})[setting] = os.environ[env_key]

        self._config = Config.from_dict(config_data)
        return self._config

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.user_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "index.symmetry")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'index.symmetry')"

        section, setting = parts

        if section == "index":
            if setting == "character_type":
                config.index.character_type = value
            elif setting == "symmetry":
                config.index.symmetry = _as_bool(value)
            elif setting == "influence_limit":
                try:
                    config.index.influence_limit = int(value)
                except ValueError:
                    return f"influence_limit must be a positive integer, got '{value}'"
            else:
                return f"Unknown index setting: {setting}. Valid: character_type, symmetry, influence_limit"
            error = config.index.validate()
            if error:
                return error

        elif section == "logging":
            if setting == "level":
                config.logging.level = value.lower()
            else:
                return f"Unknown logging setting: {setting}. Valid: level"
            error = config.logging.validate()
            if error:
                return error
        else:
            return f"Unknown section: {section}. Valid: index, logging"

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        config = self.load()
        data = config.to_dict()

        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        value = data.get(section, {}).get(setting)
        if value is None:
            return None
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        lines = [
            "Configuration:",
            "",
            "Index:",
            f"  Character type: {config.index.character_type}",
            f"  Symmetry sync: {config.index.symmetry}",
            f"  Influence limit: {config.index.influence_limit}",
            "",
            "Logging:",
            f"  Level: {config.logging.level}",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ]

        return "\n".join(lines)


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
