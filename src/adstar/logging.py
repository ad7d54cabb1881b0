from __future__ import annotations

import json as _json
import logging
import os
import sys

# Search context attached through ``extra=`` by the driver.
_CONTEXT_FIELDS = ("epsilon", "phase", "episode", "expansions")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return _json.dumps(data, ensure_ascii=False)


def get_logger(
    name: str = "adstar", level: int | str | None = None, json: bool | None = None
) -> logging.Logger:
    """Return ``name``'s logger, installing a stdout handler on first use.

    ``level`` and ``json`` fall back to the ``ADSTAR_LOG_LEVEL`` and
    ``ADSTAR_LOG_JSON`` environment variables (INFO and plain text otherwise).
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    if level is None:
        level = os.environ.get("ADSTAR_LOG_LEVEL", "INFO").upper()
    if json is None:
        json = os.environ.get("ADSTAR_LOG_JSON", "").lower() in ("1", "true", "yes")
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    return logger
