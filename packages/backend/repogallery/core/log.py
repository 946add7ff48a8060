import logging
import sys

from . import config

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def setup_logger(level: str | None = None, name: str = "repogallery") -> logging.Logger:
    """Create or update the project logger.

    Keeps exactly one stderr StreamHandler on the base logger, so calling this
    again (e.g. on app reload) only updates level and formatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_LEVELS.get((level or config.LOG_LEVEL).strip().lower(), logging.INFO))

    handler: logging.StreamHandler | None = None
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            handler = h
            break
    if handler is None:
        handler = logging.StreamHandler(stream=sys.stderr)
        logger.addHandler(handler)

    handler.setFormatter(
        logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.propagate = False
    return logger
