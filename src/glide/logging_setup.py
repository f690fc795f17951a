# src/glide/logging_setup.py

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

_STD_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Include any `extra={...}` fields
        for k, v in record.__dict__.items():
            if k not in _STD_ATTRS and not k.startswith("_"):
                base[k] = v if isinstance(v, (str, int, float, bool, type(None))) else repr(v)
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def configure_logging(level: str = "INFO", *, json_logs: bool = False, stream=None) -> logging.Logger:
    """Attach one stderr handler to the 'glide' logger. Safe to call twice."""
    root = logging.getLogger("glide")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    handler: Optional[logging.Handler] = next(
        (h for h in root.handlers if getattr(h, "_glide", False)), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler._glide = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    # sys.stderr may have been swapped since the last call
    handler.stream = stream or sys.stderr
    handler.setFormatter(
        JsonFormatter() if json_logs
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    return root
