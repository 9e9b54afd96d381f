import logging

import structlog


def configure_logging(debug: bool = False, json_output: bool = False) -> None:
    """Configure structlog for application-wide logging.

    Initialises stdlib logging at INFO (DEBUG when ``debug`` is set) and routes
    structlog through it with ISO timestamps. ``json_output`` switches the
    console renderer for a JSON one, for log collectors.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )