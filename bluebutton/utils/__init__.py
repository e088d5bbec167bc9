"""
Utilities Module

Common utilities for the harness:
- Configuration management
- Structured logging
"""

from .config import Config, load_config
from .logging import setup_logging, get_logger, ActionLogger

__all__ = ['Config', 'load_config', 'setup_logging', 'get_logger', 'ActionLogger']
