"""Utility functions and helpers"""

from .helpers import setup_logging, get_conversion_logger, format_file_size
from .config import ConfigManager, QOA2WavConfig, ConversionConfig, OutputConfig

__all__ = [
    'setup_logging',
    'get_conversion_logger',
    'format_file_size',
    'ConfigManager',
    'QOA2WavConfig',
    'ConversionConfig',
    'OutputConfig'
]
