"""JSON log lines for the exporter and its components."""

import logging
import sys
from typing import Optional, TextIO
from pythonjsonlogger import jsonlogger


ROOT_LOGGER = "ec2_price_exporter"

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'

# Keys as they appear in each JSON line
RENAMED_FIELDS = {"asctime": "time", "levelname": "level", "name": "logger"}


def configure_logging(
    level: str = "INFO",
    name: str = ROOT_LOGGER,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Write records of ``name`` and its children to ``stream`` as JSON lines.

    Safe to call twice: startup logs at INFO before the configuration is read,
    then reconfigures with the configured level. The previous handler is
    replaced, not stacked.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        name: Logger to configure; components log through its children
        stream: Destination, stdout when omitted

    Returns:
        logging.Logger: The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT, rename_fields=RENAMED_FIELDS))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(component: str) -> logging.Logger:
    """Child of the exporter logger, for code that has no logger handed to it."""
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")
