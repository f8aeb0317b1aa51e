"""Structured logging via structlog.

Configures structlog once at process startup. Library modules log through
`logging.getLogger(__name__)`; the stdlib bridge below routes those records
through the same output stream so probe and discovery logs share one format.

Renderer selection:
  debug=True:  `ConsoleRenderer` with colours for interactive use.
  debug=False: `JSONRenderer` for machine-parseable logs.

The library never calls this on import; the command-line entry point (or
the host application) does.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog for the process lifetime.

    Safe to call more than once. Logs go to stderr so that JSON written to
    stdout by the command-line entry point stays machine-readable.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging -> structlog formatting for every helpscope module.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors,
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
