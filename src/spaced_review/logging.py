import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the application.

    Initializes stdlib logging at ``level`` and renders structlog events as
    JSON lines with ISO timestamps.
    """
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
