"""veryfiable.core.logging

Process-wide logging setup. Call once, from an entry point.
"""

from __future__ import annotations

import json
import logging

from veryfiable.core.config import LoggingConfig
from veryfiable.core.time import utc_now_iso

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, object] = {
            "ts": utc_now_iso(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            out["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(out, sort_keys=True)


def configure_logging(config: LoggingConfig | None = None) -> None:
    cfg = config or LoggingConfig()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if cfg.json_output else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(cfg.level)
