import logging


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """Configure console logging on the root logger."""
    root = logging.getLogger()
    root.setLevel(log_level)

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))

    # Prevent duplicates on reload by replacing handlers
    root.handlers = [console]

    # SQL echo is far too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
