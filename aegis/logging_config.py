import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Apply ``LOG_LEVEL`` to the ``aegis`` loggers and make sure they reach stdout.

    Under uvicorn, or when a second app is built in the same process, the
    root logger already has handlers; only the level changes then, so
    records are not printed twice.
    """
    root = logging.getLogger()
    logging.getLogger("aegis").setLevel(level)
    if root.handlers:
        return
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
