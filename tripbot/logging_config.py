import logging.config


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            },
        },
        "handlers": {
            "default": {
                "formatter": "detailed",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "tripbot": {"handlers": ["default"], "level": level},
            "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
            "twilio": {"handlers": ["default"], "level": "WARNING"},
            "werkzeug": {"handlers": ["default"], "level": "INFO"},
        },
    })
