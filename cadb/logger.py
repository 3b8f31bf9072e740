import json
import logging
import sys
import time

ROOT = "cadb"


def configure_logging(level="WARNING", stream=None) -> logging.Logger:
    """JSON-lines logging for every cadb.* logger, UTC timestamps. Safe to call twice."""
    logger = logging.getLogger(ROOT)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
