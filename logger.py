import logging

import structlog

import config


def setup_logging(level=None):
    """Configure structlog to emit one JSON object per log line."""
    level_name = (level or config.LOG_LEVEL).upper()

    # Keep driver and HTTP client chatter out of the application log
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("twilio.http_client").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name=None):
    """Return a logger bound to the calling module name."""
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
