"""
logging_config.py — Logging Setup for the Pricing Service

Configures the root logger once at startup. Records go to stdout (for the
container runtime) and to a log file, tagged with the worker PID so that
output from several uvicorn workers can be told apart.

Environment:
    PRICELIST_SERVICE_LOG_FILE   log file path, empty to disable file output
    PRICELIST_SERVICE_LOG_LEVEL  root level name, default INFO
"""

import logging
import os
import sys

LOG_FILE = os.environ.get("PRICELIST_SERVICE_LOG_FILE", "pricelist_service.log")
LOG_LEVEL = os.environ.get("PRICELIST_SERVICE_LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s'

# httpx/httpcore loggen jede Anfrage auf INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = None, log_file: str = None):
    """
    Installs the stdout handler and, unless disabled, the file handler.

    Args:
        level (str): Level name, overrides PRICELIST_SERVICE_LOG_LEVEL.
        log_file (str): File path, overrides PRICELIST_SERVICE_LOG_FILE. "" disables file output.
    """
    level_name = (level or LOG_LEVEL).upper()
    log_file = LOG_FILE if log_file is None else log_file

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name):
    """Module logger; use with __name__."""
    return logging.getLogger(name)
