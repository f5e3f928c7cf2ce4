"""
Unit tests for logging utilities.

Tests ensure that:
1. Path identifiers are consistent
2. Image paths are anonymized only when requested
3. Operation metrics are tracked correctly
"""

import pytest
import logging
import json
import tempfile
from pathlib import Path
import sys
import os

# Add repository root to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from visualclassifier.utils.logging import (
    get_logger,
    configure_logging,
    path_identifier,
    PathSafeFormatter,
    MetricsLogger,
    log_image_operation
)


class TestPathIdentifier:
    """Test path identifier generation."""

    def test_consistent_hashing(self):
        """Test that same input produces same hash."""
        hash1 = path_identifier("holiday/beach.jpg")
        hash2 = path_identifier("holiday/beach.jpg")

        assert hash1 == hash2
        assert len(hash1) == 16  # First 16 chars of SHA-256

    def test_different_inputs_different_hashes(self):
        assert path_identifier("image1.jpg") != path_identifier("image2.jpg")

    def test_path_input(self):
        """Test that Path objects hash like their string form."""
        path = Path("/photos/scan.png")

        assert path_identifier(path) == path_identifier(str(path))


class TestPathSafeFormatter:
    """Test path anonymization in log formatting."""

    def test_sanitize_file_paths(self):
        """Test that file paths are replaced."""
        formatter = PathSafeFormatter(include_timestamp=False, anonymize_paths=True)

        test_cases = [
            "Processing C:/holiday/alice/beach.jpg",
            "Loading /home/user/alice_photos/scan.png",
            "Found file alice_portrait.tiff in directory",
        ]

        for message in test_cases:
            sanitized = formatter._sanitize_message(message)
            assert "image_" in sanitized
            assert "alice" not in sanitized

    def test_extension_kept(self):
        formatter = PathSafeFormatter(include_timestamp=False, anonymize_paths=True)

        sanitized = formatter._sanitize_message("Saved /tmp/out/crop.PNG")

        assert sanitized.startswith("Saved image_")
        assert sanitized.endswith(".png")

    def test_quoted_path_with_spaces(self):
        formatter = PathSafeFormatter(include_timestamp=False, anonymize_paths=True)

        for quote in ('"', "'"):
            message = f"Loading {quote}/home/alice/my photos/cat.png{quote} now"
            sanitized = formatter._sanitize_message(message)

            assert "alice" not in sanitized
            assert "photos" not in sanitized
            assert sanitized.startswith(f"Loading {quote}image_")
            assert sanitized.endswith(f".png{quote} now")

    def test_preserve_other_information(self):
        """Test that non-path text is preserved."""
        formatter = PathSafeFormatter(include_timestamp=False, anonymize_paths=True)

        message = "Processed 100 images in 2024-03-15 run, 95% loaded"

        assert formatter._sanitize_message(message) == message

    def test_disabled_by_default(self):
        formatter = PathSafeFormatter(include_timestamp=False)
        record = logging.LogRecord("test", logging.INFO, __file__, 1,
                                   "Loading %s", ("/photos/alice.jpg",), None)

        assert formatter.format(record) == "test - INFO - Loading /photos/alice.jpg"

    def test_format_with_args(self):
        formatter = PathSafeFormatter(include_timestamp=False, anonymize_paths=True)
        record = logging.LogRecord("test", logging.INFO, __file__, 1,
                                   "Loading %s", ("/photos/alice.jpg",), None)

        formatted = formatter.format(record)

        assert "alice" not in formatted
        assert "image_" in formatted


class TestLogger:
    """Test logger creation and configuration."""

    def test_get_logger_basic(self):
        """Test basic logger creation."""
        logger = get_logger("test_logger")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_logger"
        assert logger.level == logging.INFO

    def test_get_logger_with_level(self):
        """Test logger with custom level."""
        logger = get_logger("debug_logger", level=logging.DEBUG)

        assert logger.level == logging.DEBUG

    def test_get_logger_with_file(self):
        """Test logger with file output."""
        with tempfile.NamedTemporaryFile(suffix=".log", delete=False) as tmp:
            log_file = Path(tmp.name)

        try:
            logger = get_logger("file_logger", log_file=log_file)

            file_handlers = [h for h in logger.handlers
                             if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) > 0

        finally:
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)
            if log_file.exists():
                log_file.unlink()

    def test_console_handler_uses_stderr(self):
        """Log lines must never mix into stdout command output."""
        logger = get_logger("stderr_logger")

        stream_handlers = [h for h in logger.handlers
                           if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1
        assert stream_handlers[0].stream is sys.stderr
        assert stream_handlers[0].stream is not sys.stdout

    def test_handlers_attached_once(self):
        first = get_logger("once_logger")
        second = get_logger("once_logger")

        assert first is second
        assert len(second.handlers) == 1

    def test_configure_logging(self):
        logger = get_logger("visualclassifier.test_configure")

        try:
            configure_logging("DEBUG", anonymize_paths=True)

            assert logger.level == logging.DEBUG
            assert logger.handlers[0].formatter.anonymize_paths is True
        finally:
            configure_logging("INFO", anonymize_paths=False)

        assert logger.level == logging.INFO
        assert logger.handlers[0].formatter.anonymize_paths is False


class TestMetricsLogger:
    """Test metrics logging functionality."""

    def test_log_operation(self):
        """Test operation logging."""
        metrics = MetricsLogger(get_logger("metrics_test"))

        metrics.log_operation("vectorize", 123.45, success=True)

        assert len(metrics.metrics['operations']) == 1
        op = metrics.metrics['operations'][0]
        assert op['operation'] == "vectorize"
        assert op['duration_ms'] == 123.45
        assert op['success'] is True

    def test_log_performance(self):
        """Test performance metric logging."""
        metrics = MetricsLogger(get_logger("perf_test"))

        metrics.log_performance("images_per_second", 25.5)

        assert metrics.metrics['performance']['images_per_second'] == 25.5

    def test_sanitize_details(self):
        """Test that image paths in details are hashed."""
        metrics = MetricsLogger(get_logger("sanitize_test"))

        details = {
            "file_path": "/photos/alice/beach.jpg",
            "size": 1024,
            "format": "JPEG"
        }

        metrics.log_operation("load", 10.0, success=True, details=details)

        op = metrics.metrics['operations'][0]
        assert "alice" not in str(op['details'])
        assert op['details']['file_path'] == path_identifier("/photos/alice/beach.jpg")
        assert op['details']['size'] == 1024
        assert op['details']['format'] == "JPEG"

    def test_save_metrics(self):
        """Test saving metrics to JSON."""
        with tempfile.TemporaryDirectory() as tmpdir:
            output_path = Path(tmpdir) / "metrics.json"

            metrics = MetricsLogger(get_logger("save_test"))

            metrics.log_operation("test_op", 50.0)
            metrics.log_performance("test_metric", 100.0)

            metrics.save_metrics(output_path)

            assert output_path.exists()

            with open(output_path) as f:
                saved_metrics = json.load(f)

            assert 'start_time' in saved_metrics
            assert 'end_time' in saved_metrics
            assert len(saved_metrics['operations']) == 1
            assert saved_metrics['performance']['test_metric'] == 100.0


class TestLogImageOperation:
    """Test image operation logging helper."""

    def test_log_image_operation_basic(self, caplog):
        logger = get_logger("img_test", level=logging.INFO)

        with caplog.at_level(logging.INFO):
            log_image_operation(logger, "alice_portrait.jpg", "loaded")

        assert "Image loaded: image_" in caplog.text
        assert "alice_portrait" not in caplog.text

    def test_log_image_operation_with_metadata(self, caplog):
        logger = get_logger("img_meta_test", level=logging.INFO)

        metadata = {
            "width": 512,
            "height": 256,
            "channels": 3,
            "owner": "alice"  # Should not appear in log
        }

        with caplog.at_level(logging.INFO):
            log_image_operation(logger, "scan.jpg", "cropped", metadata)

        assert "512" in caplog.text
        assert "channels" in caplog.text
        assert "alice" not in caplog.text
        assert "owner" not in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
