"""Logger naming helpers.

Every connector component logs under the ``ilp_connector`` namespace, e.g.
``ilp_connector.multiledger`` or ``ilp_connector.plugin-bells``. Handlers are
only installed by :func:`configure_logging`, which the CLI calls; the library
never touches the root logger on import.
"""

from __future__ import annotations

import logging
from typing import Callable

LOGGER_NAMESPACE = "ilp_connector"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

LoggerFactory = Callable[[str], logging.Logger]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def configure_logging(level: int | str = logging.INFO, *, stream=None) -> logging.Logger:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
        level = resolved

    root = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(root.handlers):
        if getattr(handler, "_ilp_connector_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._ilp_connector_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return root
