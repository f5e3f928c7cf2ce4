"""
Configuration for the visualclassifier tools.

Settings are held in a validated dataclass that can be saved to and loaded
from JSON.
"""

import json
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional, Dict, Any, Union, Tuple

from .logging import get_logger

logger = get_logger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
OUTPUT_FORMATS = ('table', 'json')


@dataclass
class Config:
    """
    Configuration settings for image loading and reporting.
    """

    # Logging settings
    log_level: str = "INFO"
    anonymize_paths: bool = False

    # Output settings
    output_format: str = "table"
    vector_precision: int = 4  # Decimals when printing vectors
    output_dir: Optional[Path] = None

    # Input settings
    image_extensions: Tuple[str, ...] = field(
        default_factory=lambda: ('png', 'jpg', 'jpeg', 'bmp', 'gif', 'tif', 'tiff')
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level}")

        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format}")

        if self.vector_precision < 0:
            raise ValueError(f"vector_precision must be >= 0, got {self.vector_precision}")

        # JSON round trips turn tuples into lists
        if isinstance(self.image_extensions, str):
            self.image_extensions = (self.image_extensions,)
        self.image_extensions = tuple(ext.lstrip('.').lower() for ext in self.image_extensions)
        if not self.image_extensions:
            raise ValueError("image_extensions must not be empty")

        if self.output_dir and not isinstance(self.output_dir, Path):
            self.output_dir = Path(self.output_dir)

        logger.debug(f"Configuration initialized with log_level={self.log_level}")

    def save(self, path: Union[str, Path]) -> None:
        """
        Save configuration to JSON file.

        Args:
            path: Path to save configuration

        Example:
            >>> config = Config(output_format="json")
            >>> config.save("config.json")
        """
        path = Path(path)

        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Config':
        """
        Load configuration from JSON file.

        Args:
            path: Path to configuration file

        Returns:
            Config instance
        """
        path = Path(path)

        with open(path, 'r') as f:
            config_dict = json.load(f)

        if config_dict.get('output_dir'):
            config_dict['output_dir'] = Path(config_dict['output_dir'])

        config = cls(**config_dict)
        logger.info(f"Configuration loaded from {path}")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a JSON-friendly dictionary.

        Returns:
            Configuration as dictionary
        """
        config_dict = asdict(self)

        for key, value in config_dict.items():
            if isinstance(value, Path):
                config_dict[key] = value.as_posix()  # Always use forward slashes
            elif isinstance(value, tuple):
                config_dict[key] = list(value)

        return config_dict

    def update(self, **kwargs) -> None:
        """
        Update configuration parameters.

        Args:
            **kwargs: Parameters to update

        Example:
            >>> config = Config()
            >>> config.update(output_format="json", vector_precision=2)
        """
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
                logger.debug(f"Updated {key} = {value}")
            else:
                logger.warning(f"Unknown configuration parameter: {key}")

        # Re-validate
        self.__post_init__()


def get_default_config() -> Config:
    """
    Get the default configuration.

    Example:
        >>> get_default_config().output_format
        'table'
    """
    return Config()
