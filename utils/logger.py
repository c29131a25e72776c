"""
Logging utility for the step height evaluation.
"""

import logging
import os
from datetime import datetime


LOGGER_NAME = 'StepHeight'


def setup_logger(log_dir=None, log_level=logging.INFO, quiet=False):
    """
    Set up the application logger writing to the console and optionally a file.

    Parameters
    ----------
    log_dir : str or None
        Directory to store log files. No log file is written if None.
    log_level : int
        Logging level (logging.DEBUG, INFO, WARNING, ERROR, CRITICAL)
    quiet : bool
        Only errors on the console

    Returns
    -------
    logger : logging.Logger
        Configured logger instance
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else log_level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    if log_dir is not None:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        log_file = os.path.join(log_dir, f'stepheight_{timestamp}.log')

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
        logger.debug(f"Log file: {log_file}")

    _logger = logger
    return logger


# Global logger instance
_logger = None


def get_logger():
    """Get or create the global logger instance (console only by default)."""
    global _logger
    if _logger is None:
        _logger = setup_logger(log_level=logging.WARNING)
    return _logger


def log_error(message, exception=None):
    """
    Log an error message with optional exception details.

    Parameters
    ----------
    message : str
        Error message
    exception : Exception, optional
        Exception object to log
    """
    logger = get_logger()
    if exception:
        logger.error(f"{message}: {str(exception)}", exc_info=logger.isEnabledFor(logging.DEBUG))
    else:
        logger.error(message)


def log_warning(message):
    """Log a warning message."""
    get_logger().warning(message)


def log_info(message):
    """Log an info message."""
    get_logger().info(message)


def log_debug(message):
    """Log a debug message."""
    get_logger().debug(message)
