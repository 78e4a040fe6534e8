import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Components log through children of this logger, e.g. "auth_service_api.account"
logger = logging.getLogger("auth_service_api")


def configure_logging(debug: bool = False) -> logging.Logger:
    """Attach a single stream handler to the service logger."""
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
