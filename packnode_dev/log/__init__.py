"""
Logging module for the developer tools.
This module provides the console logging setup shared by all commands and child entry points.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
