import logging
import logging.config

from ..config import TrackerSettings


def setup_logging(settings: TrackerSettings) -> logging.Logger:
    if settings.LOG_TO_FILE:
        settings.LOG_DIR.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(settings.get_logging_config())
    return logging.getLogger("training_tracker")
