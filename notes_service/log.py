import logging
import sys

LOGGER_NAME = "notes_service"


def get_logger(level="INFO") -> logging.Logger:
    """
    Returns the service logger, attaching a stdout handler the first time.

    The logger does not propagate to the root logger so that messages are not
    printed twice when the hosting server configures root logging as well.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"
            )
        )
        logger.addHandler(handler)

    return logger
