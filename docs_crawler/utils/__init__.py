"""
Utility modules for the documentation crawler.
"""

from .config import Config, ConfigManager, ConfigurationError, load_config
from .logger import setup_logging, get_crawler_logger

__all__ = [
    'Config', 'ConfigManager', 'ConfigurationError', 'load_config',
    'setup_logging', 'get_crawler_logger'
]
