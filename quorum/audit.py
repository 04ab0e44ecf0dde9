import json
import logging
import sqlite3

from . import config
from .db import insert_event
from .events import Notification
from .utils import ensure_dir, file_lock

logger = logging.getLogger(__name__)


def record_event(notification: Notification) -> None:
    """Append a notification to the audit log and the SQLite event table."""
    ensure_dir(config.AUDIT_LOG_FILE.parent)
    entry = notification.to_dict()
    with file_lock(config.LOCK_DIR / "audit.log.lock"):
        with config.AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False))
            f.write("\n")

    data = dict(notification.data)
    if notification.amount is not None:
        data["amount"] = str(notification.amount)
    # The JSON log is authoritative; the SQLite copy is best-effort.
    try:
        insert_event(
            notification.timestamp,
            notification.kind.value,
            notification.index,
            notification.principal,
            data,
        )
    except sqlite3.Error as exc:
        logger.warning("Could not index %s event in %s: %s", notification.kind.value, config.DB_FILE, exc)
