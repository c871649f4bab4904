"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module. Every catalog component logs
through a [Logger][uacloudlib.core.logger.Logger] with a snake_case event name
and keyword context, e.g. ``attribute_fetch_failed nodeset_id=7 error=...``.
Failure paths that degrade to empty results (store unavailable, malformed
filter, skipped aggregate) are only visible through these log entries, so the
context fields matter.

The [StructuredFormatter][uacloudlib.core.logger.StructuredFormatter] reads the
``structured_kv`` extra attached by ``Logger`` and renders it after the
message. The CLI installs it on the root handler, which unifies ``Logger``
output with plain ``logging.getLogger()`` calls.

Examples:
    ```python
    logger = Logger("catalog")
    logger.info("namespaces_built", requested=10, built=9)
    # Output: info catalog namespaces_built requested=10 built=9

    Logger("catalog", json_output=True).info("namespaces_built", built=9)
    # Output: {"timestamp": "...", "level": "info", "service": "catalog", ...}
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _truncate(value: Any, max_value_length: int | None) -> str:
    s = str(value)
    if max_value_length and len(s) > max_value_length:
        return s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
    return s


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values longer than ``max_value_length`` are truncated. Empty values and
    values containing whitespace, equals signs, or quotes are escaped and
    wrapped in double quotes.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value. None disables truncation.
        prefix: String prepended to a non-empty result.

    Returns:
        Formatted string such as ``' nodeset_id=7 title="Machine Tools"'``,
        or an empty string when ``kwargs`` is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = _truncate(v, max_value_length)
        if not s or any(c in s for c in " =\"'"):
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats log records as ``level logger message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that attaches keyword arguments to each record.

    All public methods mirror the standard logging API with an added
    ``**kwargs`` parameter carrying the structured context.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name, passed to ``logging.getLogger(name)``.
            json_output: Emit JSON objects instead of key=value pairs.
            max_value_length: Maximum characters per value (default 1000).
        """
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(
        self, level: str, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False
    ) -> None:
        numeric = _LEVELS[level]
        if not self._logger.isEnabledFor(numeric):
            return
        if self._json_output:
            record = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": level,
                "service": self._logger.name,
                "message": msg,
                **{k: _truncate(v, self._max_value_length) for k, v in kwargs.items()},
            }
            self._logger.log(numeric, json.dumps(record, default=str), exc_info=exc_info)
            return
        extra = {"structured_kv": kwargs} if kwargs else {}
        if kwargs and self._max_value_length:
            extra["structured_kv"] = {
                k: _truncate(v, self._max_value_length) for k, v in kwargs.items()
            }
        self._logger.log(numeric, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._emit("debug", msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._emit("info", msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._emit("warning", msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._emit("error", msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._emit("critical", msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._emit("error", msg, kwargs, exc_info=True)
