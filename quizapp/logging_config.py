import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level=None):
    global _configured
    if _configured:
        return
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(level=str(level).upper(), format=LOG_FORMAT)
    _configured = True
