# careerguide/logging_config.py
# Root logger setup shared by the API and scripts.

import logging
import sys
from typing import Optional

from . import config


def configure_logging(service_name: Optional[str] = None, level: Optional[str] = None) -> None:
    """
    Configure pipe-separated logging on stdout.
    Safe to call more than once; later calls reconfigure the root logger.
    """
    service = service_name or config.SERVICE_NAME
    log_level = (level or config.LOG_LEVEL).upper()

    logging.basicConfig(
        level=log_level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | "
            f"service={service} | %(message)s"
        ),
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger(__name__).info("Logging configured for service=%s", service)
