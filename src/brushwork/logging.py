from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root handler at WARNING; brushwork and app loggers follow level."""
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    for name in ("brushwork", "app"):
        logging.getLogger(name).setLevel(level.upper())
