import logging
from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)-5.5s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "hotel_api": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })
    logging.getLogger(__name__).debug("logging configured at %s", level)
