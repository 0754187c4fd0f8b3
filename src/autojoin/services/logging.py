from __future__ import annotations
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

LOGGER_NAME = "autojoin"
LOG_FILE = "autojoin.log"

# поля, которые кластерные записи поднимают на верхний уровень JSON
_NODE_FIELDS = ("node", "cluster")


class NodeFilter(logging.Filter):
    """Stamps every record with the local node name and cluster tag."""

    def __init__(self, node: Optional[str] = None, cluster: Optional[str] = None) -> None:
        super().__init__()
        self.node = node
        self.cluster = cluster

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "node"):
            record.node = self.node
        if not hasattr(record, "cluster"):
            record.cluster = self.cluster
        return True


def _json_formatter(record: logging.LogRecord) -> str:
    base = {
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
    }
    for key in _NODE_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            base[key] = value
    # extra={"extra": {"service_id": ..., "attempt": ...}}
    extra = getattr(record, "extra", None)
    if isinstance(extra, dict):
        base.update(extra)
    if record.exc_info:
        base["exc"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def get_logger(name: str = "") -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def _handler(h: logging.Handler, level: int, node_filter: NodeFilter) -> logging.Handler:
    h.setFormatter(JsonFormatter())
    h.setLevel(level)
    h.addFilter(node_filter)
    return h


def setup_logging(
    level: str = "INFO",
    logs_dir: Optional[str | Path] = None,
    *,
    node: Optional[str] = None,
    cluster: Optional[str] = None,
) -> logging.Logger:
    """
    Логи autojoin:
      - stderr, JSON в строку
      - {logs_dir}/autojoin.log с ротацией, если logs_dir задан
    Каждая запись несёт node (prefix@host) и cluster, чтобы логи разных узлов можно было склеить.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    node_filter = NodeFilter(node, cluster)
    logger.addHandler(_handler(logging.StreamHandler(), logger.level, node_filter))

    logfile: Optional[Path] = None
    if logs_dir:
        logs_root = Path(logs_dir)
        logs_root.mkdir(parents=True, exist_ok=True)
        logfile = logs_root / LOG_FILE
        file_h = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        logger.addHandler(_handler(file_h, logger.level, node_filter))

    logger.propagate = False
    logger.debug("logging.initialized", extra={"extra": {"logfile": str(logfile) if logfile else None}})
    return logger
