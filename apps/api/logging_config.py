"""Logging setup for the collections service.

Stdlib logging carries everything; structlog renders the service's
event-style logs as JSON on top of it.
"""

# flake8: noqa: E501


import logging
import sys

import structlog


def setup_logging(app) -> None:
    """
    Configure stdlib logging and structlog from the app config.

    Args:
        app: Flask application
    """
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)

    root = logging.getLogger()
    if not any(getattr(h, "_collections_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handler._collections_handler = True
        root.addHandler(handler)
    root.setLevel(level)

    # Quiet chatty libraries
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    app.logger.setLevel(level)
