"""Utilities package. """

from .logger import get_logger, log_error, log_warning, log_info, log_debug, setup_logger

__all__ = [
    'get_logger',
    'log_error',
    'log_warning',
    'log_info',
    'log_debug',
    'setup_logger',
]
