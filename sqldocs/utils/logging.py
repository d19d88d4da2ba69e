"""Structured logging setup using structlog.

Implements a **dual-renderer pattern**: the same shared processor chain
(context vars, log level, timestamps, stack info) feeds into either a
coloured ConsoleRenderer for local development or a JSONRenderer for
production.  The CLI passes ``json_output`` from the ``app_env`` setting;
the ``APP_ENV`` environment variable also selects JSON when set to
``"production"``.

Standard-library ``logging`` is also rewired through the same structlog
formatter so that third-party libraries produce identically formatted
output.  The per-request INFO lines of the HTTP and OpenAI SDK loggers are
held back to WARNING so ``sqldocs index`` does not print one line per
embedding batch twice.
"""

import logging
import os
import sys

import structlog

# SDK loggers that report every HTTP request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR, FATAL).
        json_output: Force JSON output. When False, uses console rendering in
                     development and JSON in production (detected via APP_ENV).

    Returns:
        A configured structlog BoundLogger.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    # Order matters: contextvars first, then level/timestamps, then exceptions.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        # CLI output goes to stdout; keep log lines on stderr and uncoloured
        # when stderr is not a terminal.
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    floor = max(logging.WARNING, logging.getLevelName(log_level.upper()))
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(floor)

    return structlog.get_logger()
