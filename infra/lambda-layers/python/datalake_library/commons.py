import logging
import os


def init_logger(file_name, log_level=None):
    if not log_level:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig()
    logger = logging.getLogger(file_name)
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    return logger
