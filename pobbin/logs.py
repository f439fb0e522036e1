import logging

LOG_FORMAT = "[%(levelname)-7s:%(name)-15s] %(message)s"
QUIET_LOGGERS = ["botocore", "aiobotocore", "httpx", "httpcore"]


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process. Call this once, from the entry point
    (the CLI or the server startup), never from library code.
    """
    logging.basicConfig(format=LOG_FORMAT, level=level.upper())
    logging.getLogger().setLevel(level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
