"""Structured logging infrastructure with verbosity levels and progress tracking."""

import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog

ROOT_LOGGER_NAME = 'medium_hugo_migrator'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string

    Returns:
        Configured logger instance
    """
    # Determine log level
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    else:
        if verbosity >= 2:
            log_level = logging.DEBUG
        elif verbosity >= 1:
            log_level = logging.INFO
        else:
            log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    # Root stays at WARNING to avoid noise from requests/urllib3
    logging.basicConfig(
        level=logging.WARNING,
        format=log_format,
        datefmt=date_format
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


class ProgressTracker:
    """
    Context manager that counts per-post outcomes and logs a summary on exit.

    Outcomes are the DocumentStatus values ('converted', 'ignored', 'errored').
    A running line is logged every `log_every` posts and for every errored one.
    """

    def __init__(self, total_items: int, item_type: str = "posts", log_every: int = 10):
        self.total_items = total_items
        self.item_type = item_type
        self.log_every = log_every
        self.counts: Dict[str, int] = {'converted': 0, 'ignored': 0, 'errored': 0}
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(f'{ROOT_LOGGER_NAME}.progress')

    @property
    def processed_items(self) -> int:
        return sum(self.counts.values())

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.time()
        self.logger.info(f"Starting processing of {self.total_items} {self.item_type}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return

        elapsed = time.time() - self.start_time
        errored = self.counts['errored']

        if errored and errored == self.total_items:
            log_method = self.logger.error
        elif errored:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        log_method(
            f"{self.item_type.capitalize()}: {self.processed_items}/{self.total_items} processed, "
            f"{self.counts['converted']} converted, {self.counts['ignored']} ignored, "
            f"{errored} errored in {format_elapsed(elapsed)}"
        )

    def record(self, status: str, name: str = '') -> None:
        """Count one finished item under status."""
        self.counts[status] = self.counts.get(status, 0) + 1

        if status == 'errored':
            self.logger.warning(f"Errored: {name}")
        if self.processed_items % self.log_every == 0:
            self.logger.info(f"Processed {self.processed_items}/{self.total_items} {self.item_type}")


def format_elapsed(seconds: float) -> str:
    """Format seconds as 12.3s, 4m 5s or 1h 2m 3s."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, seconds = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"

    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {seconds}s"


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log the effective configuration for debugging.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    log_section("Configuration")

    input_settings = config.get('input', {})
    logger.info(f"Input: {input_settings.get('path', 'Not Set')}")

    logger.info("")

    output = config.get('output', {})
    logger.info(f"Output Directory: {output.get('directory', './medium-to-hugo')}")
    logger.info(f"Content Type: {output.get('content_type', 'post')}")
    logger.info(f"Images Directory: {output.get('images_directory', 'img')}")
    logger.info(f"Ignore Empty: {output.get('ignore_empty', False)}")
    logger.info(f"Download Images: {output.get('download_images', True)}")

    logger.info("")

    medium = config.get('medium', {})
    logger.info(f"Medium Base URL: {medium.get('base_url', 'https://medium.com')}")
    logger.info(f"Username Fallback: {medium.get('username') or 'Not Set'}")

    logger.info("")

    network = config.get('network', {})
    logger.info(f"Timeout: {network.get('timeout', 30)}s")
    logger.info(f"Allow Insecure: {network.get('allow_insecure', False)}")


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config'
]
