"""Configuration management for mediaforge.

Settings are grouped into dataclass sections, loaded from a JSON file when
one is found and then overridden by environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from .utils.logging import LogConfig, setup_logging


@dataclass
class ImageConfig:
    """Output encoding settings (``image.default_options.*``)."""

    default_options: Dict[str, Any] = field(default_factory=lambda: {"quality": 90})


@dataclass
class ProcessingConfig:
    """Pipeline and service runtime settings."""

    frame_workers: int = 1  # threads for per-frame adjustment of animations
    temp_dir: Optional[str] = None  # re-encoded files go here, system temp if unset
    size_cache_entries: int = 10000


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    console: bool = True
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


class Config:
    """Main configuration class."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration.

        Args:
            config_file: Path to configuration file
        """
        self.config_file = config_file or self._find_config_file()

        self.image = ImageConfig()
        self.processing = ProcessingConfig()
        self.logging = LoggingConfig()

        if self.config_file and os.path.exists(self.config_file):
            self.load(self.config_file)

        self._load_from_env()

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations.

        Returns:
            Path to config file or None
        """
        search_paths = [
            "mediaforge.json",
            os.path.expanduser("~/.mediaforge/config.json"),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def load(self, config_file: str):
        """Load configuration from file.

        Args:
            config_file: Path to configuration file
        """
        with open(config_file, 'r') as f:
            data = json.load(f)

        if "image" in data:
            self.image = ImageConfig(**data["image"])

        if "processing" in data:
            self.processing = ProcessingConfig(**data["processing"])

        if "logging" in data:
            self.logging = LoggingConfig(**data["logging"])

    def save(self, config_file: Optional[str] = None):
        """Save configuration to file."""
        config_file = config_file or self.config_file or "mediaforge.json"
        with open(config_file, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve configuration values using dotted paths."""
        parts = [part for part in (key or "").split('.') if part]
        if not parts:
            return default

        current: Any = self
        for part in parts:
            if isinstance(current, dict):
                if part not in current:
                    return default
                current = current[part]
            elif hasattr(current, part):
                current = getattr(current, part)
            else:
                return default

        return current

    def set(self, key: str, value: Any) -> None:
        """Set configuration values using dotted paths.

        Raises:
            KeyError: If the path does not lead into a known section
        """
        parts = [part for part in (key or "").split('.') if part]
        if not parts:
            raise KeyError(key)

        target: Any = self
        for part in parts[:-1]:
            if isinstance(target, dict):
                target = target.setdefault(part, {})
            elif hasattr(target, part):
                target = getattr(target, part)
            else:
                raise KeyError(key)

        last = parts[-1]
        if isinstance(target, dict):
            target[last] = value
        elif hasattr(target, last):
            setattr(target, last, value)
        else:
            raise KeyError(key)

    def _load_from_env(self):
        """Load configuration from environment variables."""
        if "MEDIAFORGE_IMAGE_QUALITY" in os.environ:
            self.image.default_options["quality"] = int(os.environ["MEDIAFORGE_IMAGE_QUALITY"])

        if "MEDIAFORGE_FRAME_WORKERS" in os.environ:
            self.processing.frame_workers = int(os.environ["MEDIAFORGE_FRAME_WORKERS"])
        if "MEDIAFORGE_TEMP_DIR" in os.environ:
            self.processing.temp_dir = os.environ["MEDIAFORGE_TEMP_DIR"]

        if "MEDIAFORGE_LOG_LEVEL" in os.environ:
            self.logging.level = os.environ["MEDIAFORGE_LOG_LEVEL"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "image": asdict(self.image),
            "processing": asdict(self.processing),
            "logging": asdict(self.logging),
        }

    def configure_logging(self) -> None:
        """(Re)initialise the mediaforge loggers from the ``logging`` section."""
        LogConfig.reset()
        setup_logging(
            level=self.logging.level,
            log_file=self.logging.file or False,
            console=self.logging.console,
            format_string=self.logging.format,
            max_bytes=self.logging.max_bytes,
            backup_count=self.logging.backup_count,
        )
