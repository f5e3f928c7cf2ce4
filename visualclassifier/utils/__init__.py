"""
Utility modules for visualclassifier.

Contains logging helpers and configuration management.
"""

from .logging import get_logger, path_identifier

__all__ = ['get_logger', 'path_identifier']
