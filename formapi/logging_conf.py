from logging.config import dictConfig

from formapi.config import config


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "[%(asctime)s] %(levelname)s: %(name)s: %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": config.LOG_LEVEL,
                }
            },
            "loggers": {
                "formapi": {
                    "handlers": ["console"],
                    "level": config.LOG_LEVEL,
                    "propagate": False,
                },
                "passlib": {"level": "ERROR"},
            },
        }
    )
