import logging
import os
import sys

LOG_NAME = "LeverCalc"
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
LOG_DATEFMT = '%H:%M:%S'


def setup_logger(name: str = LOG_NAME, level: str = None) -> logging.Logger:
    """stdout logger; level comes from LOG_LEVEL unless given"""
    logger = logging.getLogger(name)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())

    # setup may run again when NiceGUI re-imports the app
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    return logger


log = setup_logger()
