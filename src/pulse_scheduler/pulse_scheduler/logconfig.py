# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging setup for the workflow map tools.

Library modules only create loggers; handlers are installed by the CLI (or
the embedding application) through :func:`configure_logging`.
"""

import logging
from typing import Optional

from pulse_scheduler.config import get_config

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "pulse_scheduler"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    *level* defaults to the ``log_level`` setting. Calling this again replaces
    the handler instead of stacking a second one.
    """
    level = (level or get_config().log_level).upper()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_pulse_wmap", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._pulse_wmap = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
