import logging
import os
import sys
from typing import Optional

# Third-party loggers that are too chatty at INFO for a scheduled sync.
QUIET_LOGGERS = ("urllib3",)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure stdout logging for a sync run.

    The level comes from the argument, then LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger("market_sync")
