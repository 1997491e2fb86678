from logging import config
from typing import Optional

from . import settings


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "formatter": "default_formatter",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": settings.LOG_LEVEL,
    },
    "loggers": {},
    "formatters": {
        "default_formatter": {
            "format": "%(asctime)s | %(levelname)s | %(message)s | %(name)s | " "%(filename)s:%(lineno)s",
        },
    },
}


def configure_logging(level: Optional[str] = None) -> None:
    logging_config = dict(LOGGING)
    if level is not None:
        logging_config["root"] = dict(LOGGING["root"], level=level.upper())
    config.dictConfig(logging_config)
