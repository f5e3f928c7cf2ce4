"""
Logging utilities for image processing.

Provides logger construction with an optional path-anonymizing formatter,
hash-based image identifiers and lightweight operation metrics.
"""

import logging
import hashlib
import json
import re
import sys
from pathlib import Path
from typing import Optional, Union, Dict, Any
from datetime import datetime

IMAGE_SUFFIXES = ('png', 'jpg', 'jpeg', 'bmp', 'gif', 'tif', 'tiff')

_EXT = '(?:' + '|'.join(IMAGE_SUFFIXES) + ')'

# Matches full paths (C:/dir/file.ext or /dir/file.ext) and bare filenames (file.ext).
# Quoted paths may contain spaces; unquoted paths end at the first whitespace,
# so in an unquoted "my photos/cat.png" only "photos/cat.png" is replaced.
_PATH_PATTERN = re.compile(
    r'(?P<quote>[\'"])(?P<quoted>[^\'"\n]*\.(?P<qext>' + _EXT + r'))(?P=quote)'
    r'|(?P<bare>[^\s\'"]*\.(?P<ext>' + _EXT + r'))\b',
    flags=re.IGNORECASE
)


class PathSafeFormatter(logging.Formatter):
    """Formatter that can replace image file paths with hashed identifiers."""

    def __init__(self, include_timestamp: bool = True, anonymize_paths: bool = False):
        """
        Initialize the formatter.

        Args:
            include_timestamp: Whether to include timestamps in log messages
            anonymize_paths: Whether image paths are replaced by identifiers
        """
        if include_timestamp:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            date_fmt = "%Y-%m-%d %H:%M:%S"
        else:
            format_str = "%(name)s - %(levelname)s - %(message)s"
            date_fmt = None

        super().__init__(format_str, datefmt=date_fmt)
        self.anonymize_paths = anonymize_paths

    def format(self, record: logging.LogRecord) -> str:
        if self.anonymize_paths:
            record.msg = self._sanitize_message(record.getMessage())
            record.args = None

        return super().format(record)

    def _sanitize_message(self, message: str) -> str:
        """
        Replace image file paths in a message with hashed names.

        Args:
            message: Original message

        Returns:
            Message with every image path replaced by ``image_<hash>.<ext>``
        """
        def replace_path(match):
            if match.group('quote'):
                quote = match.group('quote')
                full_path = match.group('quoted')
                ext = match.group('qext').lower()
                return f"{quote}image_{path_identifier(full_path)[:8]}.{ext}{quote}"
            full_path = match.group('bare')
            ext = match.group('ext').lower()
            return f"image_{path_identifier(full_path)[:8]}.{ext}"

        return _PATH_PATTERN.sub(replace_path, message)


def path_identifier(path: Union[str, Path]) -> str:
    """
    Generate a stable identifier for an image path.

    Args:
        path: Path or string to hash

    Returns:
        Hexadecimal SHA-256 prefix (16 characters)

    Example:
        >>> len(path_identifier("holiday/beach.jpg"))
        16
    """
    if isinstance(path, Path):
        path = str(path)

    return hashlib.sha256(path.encode('utf-8')).hexdigest()[:16]


class MetricsLogger:
    """Logger for timing and throughput of image operations."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.metrics: Dict[str, Any] = {
            'start_time': datetime.now().isoformat(),
            'operations': [],
            'performance': {}
        }

    def log_operation(self,
                      operation: str,
                      duration_ms: float,
                      success: bool = True,
                      details: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an operation with timing and success status.

        Args:
            operation: Name of the operation
            duration_ms: Duration in milliseconds
            success: Whether operation succeeded
            details: Additional details; image paths are hashed
        """
        op_data = {
            'operation': operation,
            'duration_ms': duration_ms,
            'success': success,
            'timestamp': datetime.now().isoformat()
        }

        if details:
            op_data['details'] = self._sanitize_details(details)

        self.metrics['operations'].append(op_data)

        status = "completed" if success else "failed"
        self.logger.info(f"Operation '{operation}' {status} in {duration_ms:.2f}ms")

    def log_performance(self, metric_name: str, value: float) -> None:
        """Record a named performance value such as ``images_per_second``."""
        self.metrics['performance'][metric_name] = value
        self.logger.info(f"Performance metric - {metric_name}: {value:.3f}")

    def _sanitize_details(self, details: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for key, value in details.items():
            if isinstance(value, (str, Path)) and _PATH_PATTERN.search(str(value)):
                sanitized[key] = path_identifier(value)
            else:
                sanitized[key] = value
        return sanitized

    def save_metrics(self, output_path: Path) -> None:
        """
        Save metrics to a JSON file.

        Args:
            output_path: Path to save metrics JSON
        """
        self.metrics['end_time'] = datetime.now().isoformat()

        with open(output_path, 'w') as f:
            json.dump(self.metrics, f, indent=2, default=str)

        self.logger.info(f"Metrics saved to {output_path}")


def get_logger(name: str,
               level: Union[str, int] = logging.INFO,
               log_file: Optional[Path] = None,
               include_timestamp: bool = True,
               anonymize_paths: bool = False) -> logging.Logger:
    """
    Get a configured logger.

    Handlers are only attached the first time a given name is requested.

    Args:
        name: Logger name (typically __name__)
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for logging
        include_timestamp: Whether to include timestamps
        anonymize_paths: Whether image paths are hashed in messages

    Returns:
        Configured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Loaded 3 images")
        2024-01-01 12:00:00 - __main__ - INFO - Loaded 3 images
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(level)

        # stdout is reserved for command output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(PathSafeFormatter(include_timestamp, anonymize_paths))
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(PathSafeFormatter(include_timestamp, anonymize_paths))
            logger.addHandler(file_handler)

    return logger


def configure_logging(level: Union[str, int] = logging.INFO,
                      anonymize_paths: bool = False) -> None:
    """
    Apply a level and path policy to every logger under ``visualclassifier``.

    Args:
        level: Logging level
        anonymize_paths: Whether image paths are hashed in messages
    """
    root = logging.getLogger('visualclassifier')
    root.setLevel(level)

    for name, candidate in logging.Logger.manager.loggerDict.items():
        if not isinstance(candidate, logging.Logger):
            continue
        if name != 'visualclassifier' and not name.startswith('visualclassifier.'):
            continue
        candidate.setLevel(level)
        for handler in candidate.handlers:
            if isinstance(handler.formatter, PathSafeFormatter):
                handler.formatter.anonymize_paths = anonymize_paths


def log_image_operation(logger: logging.Logger,
                        image_path: Union[str, Path],
                        operation: str,
                        metadata: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an operation performed on an image file.

    Args:
        logger: Logger instance
        image_path: Path to image (will be hashed)
        operation: Type of operation performed
        metadata: Optional metadata; only dimension and format keys are kept

    Example:
        >>> log_image_operation(logger, "beach.jpg", "loaded", {"width": 64})
        INFO - Image loaded: image_3f0c9a1e22b4d7c6 - metadata: {'width': 64}
    """
    safe_id = path_identifier(image_path)

    safe_metadata = {}
    if metadata:
        for key, value in metadata.items():
            if key in ['width', 'height', 'channels', 'format_tag']:
                safe_metadata[key] = value

    log_msg = f"Image {operation}: image_{safe_id}"
    if safe_metadata:
        log_msg += f" - metadata: {safe_metadata}"

    logger.info(log_msg)
