"""structlog configuration for chunkwise.

Every module logs through ``structlog.get_logger(logger_name=__name__)``
with snake_case event names.  :func:`configure_logging` installs one
processor chain and renders it either as coloured console lines or as
JSON.  Standard-library records from the backend clients pass through the
same chain; those clients are held at ``library_level`` so that a DEBUG
run shows chunking and upsert events rather than HTTP chatter.
"""

import logging
import sys

import structlog

# Loggers of third-party clients used by the providers.
NOISY_LIBRARIES = (
    "chromadb",
    "httpx",
    "httpcore",
    "qdrant_client",
    "openai",
    "fastembed",
    "posthog",
)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    library_level: str = "WARNING",
) -> structlog.BoundLogger:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Level for chunkwise events (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of the console format.
        library_level: Level applied to the loggers in ``NOISY_LIBRARIES``.

    Returns:
        The root structlog logger.
    """
    level = log_level.upper()
    processors = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
