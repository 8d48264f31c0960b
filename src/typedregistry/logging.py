# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Structured logging for :mod:`typedregistry`.

Records carry an ``event`` name and a ``context`` mapping as attributes, so
handlers and formatters can treat them as data::

    logger = get_logger(__name__, context={"component": "resolver"})
    logger.debug("value built", event="registry.resolve.construct",
                 context={"type": "Service"})

The package only logs at DEBUG. :func:`configure_logging` is a convenience
for applications that want the events on stderr.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, override

_LOG_LEVEL_ENV = "TYPEDREGISTRY_LOG_LEVEL"
_LOG_FORMAT_ENV = "TYPEDREGISTRY_LOG_FORMAT"


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Adapter requiring ``event=`` on every call and merging ``context=``
    into the context it was created with."""

    def __init__(
        self, logger: logging.Logger, *, context: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(logger, dict(context or {}))

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        event = kwargs.pop("event", None)
        if not isinstance(event, str):
            raise TypeError("Structured logs require an 'event' keyword.")
        inline = kwargs.pop("context", None) or {}
        if not isinstance(inline, Mapping):
            raise TypeError("context must be a mapping when provided.")

        kwargs["extra"] = {"event": event, "context": {**(self.extra or {}), **inline}}
        return msg, kwargs


def get_logger(
    name: str, *, context: Mapping[str, object] | None = None
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for ``name`` carrying ``context``."""
    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Send log records to stderr as text or JSON.

    ``level`` and ``json_mode`` default to ``TYPEDREGISTRY_LOG_LEVEL`` (else
    ``INFO``) and ``TYPEDREGISTRY_LOG_FORMAT=json``. When the root logger
    already has handlers only its level changes, unless ``force`` is set.
    """
    env = os.environ if env is None else env
    resolved_level = _coerce_level(level or env.get(_LOG_LEVEL_ENV) or logging.INFO)
    if json_mode is None:
        json_mode = env.get(_LOG_FORMAT_ENV, "").strip().lower() == "json"

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved_level)
        return

    formatter: dict[str, object] = (
        {"()": _JsonFormatter}
        if json_mode
        else {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
    )
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "default",
                }
            },
            "root": {"handlers": ["stderr"], "level": resolved_level},
        }
    )


class _JsonFormatter(logging.Formatter):
    """One compact JSON object per record; unserializable values use ``repr``."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("event", "context"):
            value = getattr(record, key, None)
            if value:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        raise TypeError(f"Unknown log level: {level!r}")
    return resolved


__all__ = ["StructuredLogger", "configure_logging", "get_logger"]
