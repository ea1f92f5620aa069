from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

# Structured fields accepted via `logger.info(..., extra={...})`. Message text is never
# one of them.
_EXTRA_FIELDS = ("event", "rule_id", "reason", "source", "endpoint", "status_code")


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).replace(microsecond=0).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else "Exception"
            payload["exc_type"] = exc_type
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def configure_logging(*, level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure root logging for CLI/server entry points.

    Defaults come from CHATGUARD_LOG_LEVEL and CHATGUARD_LOG_JSON=1.
    """
    if level is None:
        level = os.getenv("CHATGUARD_LOG_LEVEL", "INFO")
    if json_logs is None:
        json_logs = os.getenv("CHATGUARD_LOG_JSON", "").strip() == "1"

    level_value = getattr(logging, level.strip().upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level_value)

    # Avoid duplicated handlers when reconfiguring in the same process (tests).
    root.handlers[:] = []

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)
