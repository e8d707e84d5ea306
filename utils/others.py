import logging
import os
from datetime import datetime
from pathlib import Path

import pytz
from pytz import timezone as pytz_timezone

from definitions import LOGS_DIR

logger = logging.getLogger(__name__)

CUSTOM_DATE_FORMAT = "%d/%m/%Y %H:%M"  # DD/MM/YYYY hh:mm

# CLI arguments never written to the log verbatim
_REDACTED_ARGS = {"password"}


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[38;5;244m",  # gray
        "INFO": "\033[38;5;120m",  # soft mint green
        "WARNING": "\033[38;5;221m",  # warm yellow
        "ERROR": "\033[38;5;196m",  # bright red
        "CRITICAL": "\033[1;38;5;196;48;5;232m",  # bold bright red on dark bg
    }
    RESET = "\033[0m"

    def format(self, record):
        level = record.levelname
        if level in self.COLORS:
            record.levelname = f"{self.COLORS[level]}{level}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = level


def setup_logging(config, console=False, debug=False, log_dir=None):
    """
    Sets up the logging configuration based on provided settings.

    Args:
        config (dict): The configuration dictionary; `script.log_file_name` names the log file
            and `script.log_dir` picks its directory.
        console (bool): If True, log to the console (stderr) instead of a file.
        debug (bool): If True, set the logging level to DEBUG; otherwise, INFO.
        log_dir (str | Path): Directory for the log file; wins over `script.log_dir`.

    Returns:
        Path | None: The log file path, or None when logging to the console.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    # Define logger level
    logger_level = logging.DEBUG if debug else logging.INFO

    # Define logging format
    log_format = "%(asctime)s [%(name)s.%(funcName)s:%(lineno)d] %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    # Configure logging handlers
    handlers = []
    log_file_path = None

    if console:
        handler = logging.StreamHandler()
        handler.setFormatter(ColoredFormatter(log_format, datefmt=date_format))
        handlers.append(handler)
    else:
        # Generate log file name
        script_config = config.get("script") or {}
        log_file_name_base = script_config.get("log_file_name") or "create-bsky-post"
        log_file_name_time = datetime.now().strftime("%Y%m%d%H%M%S")
        logs_dir = Path(log_dir or script_config.get("log_dir") or LOGS_DIR)
        log_file_path = logs_dir / f"{log_file_name_base}-{log_file_name_time}.log"

        # Ensure the logs directory exists
        os.makedirs(logs_dir, exist_ok=True)

        handler = logging.FileHandler(log_file_path)
        handler.setFormatter(logging.Formatter(log_format, date_format))
        handlers.append(handler)

    # Set up the logging configuration
    logging.basicConfig(
        level=logger_level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
    )

    # Log initialization messages
    logger.info("Logging initialized.")
    if console:
        logger.info("Logging to console.")
    else:
        logger.info("Logging to file: %s", log_file_path)

    return log_file_path


def log_startup_info(args, config):
    """
    Log startup information: every argument (secrets redacted) and the config sections in use.

    Args:
        args (Namespace): The parsed arguments.
        config (dict): The configuration dictionary.
    """
    logger.info("#" * 80)
    logger.info("New instance of create-bsky-post started.")
    logger.info("TIME: %s", datetime.now())
    logger.info("Startup Parameters:")

    for arg, value in vars(args).items():
        if arg in _REDACTED_ARGS and value:
            value = "********"
        logger.info("  ARG - %s: %s", arg, value)

    logger.info("Config sections: %s", ", ".join(sorted(config)) or "(none)")
    logger.info("#" * 80)


def parse_custom_date(date_str, tz_name="UTC"):
    """
    Parse a `DD/MM/YYYY hh:mm` timestamp given in `tz_name` into an aware UTC datetime.

    Raises:
        ValueError: If the string doesn't match the format or the zone is unknown.
    """
    naive = datetime.strptime(date_str.strip(), CUSTOM_DATE_FORMAT)
    try:
        tz = pytz_timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown timezone: {tz_name}")
    return tz.localize(naive).astimezone(pytz.utc)
