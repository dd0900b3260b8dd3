"""Logging setup shared by the API process and scripts."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level.upper())
    # SQL echo goes through DEBUG; keep it off unless asked for
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
