"""structlog configuration for fwdctl.

All log output goes to stderr so stdout stays clean for command results.
Two renderers:
- Human (default): console renderer, colored when stderr is a TTY
- JSON (--log-json): one JSON object per line

Client contact details are personal data.  Email addresses found in any
string field (error messages from uniqueness checks, batch item failures)
are masked before rendering, so logs can be shipped without redaction.
Every line also carries the workspace root, which tells apart the logs of
several workspaces written to one collector.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import structlog

_EMAIL_RE = re.compile(r"\b([\w.%+-])[\w.%+-]*@([\w-]+(?:\.[\w-]+)*\.\w{2,})\b")

# Third-party loggers that stay at WARNING even under --verbose.
_QUIET_LOGGERS = ("sqlalchemy",)


def mask_email(text: str) -> str:
    """``jean.dupont@example.com`` -> ``j***@example.com``."""
    return _EMAIL_RE.sub(r"\1***@\2", text)


def mask_contact_details(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask email addresses in every string value."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "@" in value:
            event_dict[key] = mask_email(value)
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    workspace_root: Path | None = None,
) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        verbose: ``fwdctl`` loggers emit DEBUG (span timings, batch
            detail).  When False, only WARNING+.
        log_json: Use the JSON renderer instead of the console renderer.
        workspace_root: Bound as ``workspace`` on every line when given.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        mask_contact_details,
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    structlog.contextvars.clear_contextvars()
    if workspace_root is not None:
        structlog.contextvars.bind_contextvars(workspace=str(workspace_root))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("fwdctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
