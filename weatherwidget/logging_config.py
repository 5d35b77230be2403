import logging


def setup_logging(log_level: str = "INFO") -> None:
    """Configure the root logger once with a single console handler."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    # request lines from httpx would drown the provider logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
