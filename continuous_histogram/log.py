"""Logging setup for scripts and notebooks.

Library modules only ever call ``logging.getLogger(__name__)``. Call
:func:`configure_logging` from a script to see the pipeline's diagnostics
(rejected noise values, regroup summaries, dropped tail mass).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "continuous_histogram"
LEVEL_ENV_VAR = "CONTINUOUS_HISTOGRAM_LOG_LEVEL"


def configure_logging(level: Optional[Union[str, int]] = None, *, force: bool = False) -> logging.Logger:
    """Send the package's log records to stderr.

    ``level`` defaults to ``$CONTINUOUS_HISTOGRAM_LOG_LEVEL``, then INFO. A
    second call only updates the level unless ``force`` replaces the handler.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    if force:
        for h in logger.handlers[:]:
            logger.removeHandler(h)
            h.close()
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
