import json
import sqlite3
from typing import Any, Dict, List, Optional

from . import config
from .utils import ensure_dir, file_lock


def _connect() -> sqlite3.Connection:
    ensure_dir(config.DB_FILE.parent)
    conn = sqlite3.connect(config.DB_FILE)
    conn.execute("pragma journal_mode=WAL;")
    return conn


def init_db() -> None:
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            conn.execute(
                """
                create table if not exists events (
                    id integer primary key autoincrement,
                    ts text not null,
                    event text not null,
                    proposal_index integer,
                    principal text,
                    data text
                );
                """
            )
            conn.commit()
        finally:
            conn.close()


def insert_event(
    ts: str,
    event: str,
    proposal_index: Optional[int],
    principal: Optional[str],
    data: Dict[str, Any],
) -> None:
    init_db()
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            conn.execute(
                "insert into events (ts, event, proposal_index, principal, data) values (?, ?, ?, ?, ?)",
                (ts, event, proposal_index, principal, json.dumps(data, ensure_ascii=False)),
            )
            conn.commit()
        finally:
            conn.close()


def list_events(limit: int = 50, proposal_index: Optional[int] = None) -> List[Dict[str, Any]]:
    init_db()
    query = "select ts, event, proposal_index, principal, data from events"
    params: List[Any] = []
    if proposal_index is not None:
        query += " where proposal_index = ?"
        params.append(proposal_index)
    query += " order by id desc limit ?"
    params.append(limit)
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
    events = []
    for ts, event, index, principal, data in rows:
        try:
            payload = json.loads(data) if data else {}
        except ValueError:
            payload = {"raw": data}
        events.append(
            {"timestamp": ts, "event": event, "index": index, "principal": principal, "data": payload}
        )
    return events
