"""Load and save a wallet's engine state between CLI/API invocations."""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from . import config
from .audit import record_event
from .engine import AuthorizationEngine
from .events import EventKind, Notification
from .executor import ActionExecutor
from .registry import PrincipalRegistry
from .utils import dump_yaml, file_lock, load_yaml_or_json, utc_now

STATE_VERSION = 1


def _lock_path() -> Path:
    return config.LOCK_DIR / "state.lock"


class _PendingAudit:
    """Hold notifications until the state they describe is on disk."""

    OUTCOMES = (EventKind.EXECUTED, EventKind.EXECUTION_FAILED)

    def __init__(self) -> None:
        self.pending: List[Notification] = []
        self.durable = 0
        self.checkpointed = False

    def __call__(self, notification: Notification) -> None:
        self.pending.append(notification)
        # The outcome of an execute describes a flag the checkpoint already saved.
        if self.checkpointed and notification.kind in self.OUTCOMES:
            self.checkpointed = False
            self.durable = len(self.pending)

    def mark_saved(self) -> None:
        self.durable = len(self.pending)
        self.checkpointed = True

    def flush(self, durable_only: bool = False) -> None:
        count = self.durable if durable_only else len(self.pending)
        ready, self.pending = self.pending[:count], self.pending[count:]
        self.durable = 0
        for notification in ready:
            record_event(notification)


def wallet_exists() -> bool:
    return config.STATE_FILE.exists()


def load_committee(path: Path) -> PrincipalRegistry:
    """Build a registry from a YAML/JSON file with ``principals`` and ``threshold``."""
    data = load_yaml_or_json(path)
    if not data:
        raise ValueError(f"Committee file is empty or missing: {path}")
    return PrincipalRegistry(data.get("principals") or [], data.get("threshold", 0))


def save_engine(engine: AuthorizationEngine) -> None:
    state: Dict[str, Any] = {"version": STATE_VERSION, "saved_at": utc_now()}
    state.update(engine.to_dict())
    dump_yaml(state, config.STATE_FILE)


def load_engine(executor: Optional[ActionExecutor] = None, audit: bool = True) -> AuthorizationEngine:
    data = load_yaml_or_json(config.STATE_FILE)
    if not data:
        raise FileNotFoundError(f"No wallet found at {config.STATE_FILE}; run 'quorum init' first")
    version = data.get("version", STATE_VERSION)
    if version != STATE_VERSION:
        raise ValueError(f"Unsupported wallet state version: {version}")
    engine = AuthorizationEngine.from_dict(data, executor=executor)
    if audit:
        engine.subscribe(record_event)
    return engine


def init_wallet(principals: Sequence[str], threshold: int) -> AuthorizationEngine:
    registry = PrincipalRegistry(principals, threshold)
    with file_lock(_lock_path()):
        if wallet_exists():
            raise FileExistsError(f"Wallet already exists at {config.STATE_FILE}")
        engine = AuthorizationEngine(registry)
        save_engine(engine)
    return engine


@contextmanager
def open_wallet(executor: Optional[ActionExecutor] = None) -> Iterator[AuthorizationEngine]:
    """Hold the wallet lock for one load -> operate -> save cycle.

    State is saved only when the block exits cleanly, except that ``execute``
    checkpoints the executed flag before the action runs. Notifications reach
    the audit trail only once the state they describe has been saved.
    """
    with file_lock(_lock_path()):
        engine = load_engine(executor, audit=False)
        audit = _PendingAudit()
        engine.subscribe(audit)

        def checkpoint() -> None:
            save_engine(engine)
            audit.mark_saved()

        engine.checkpoint = checkpoint
        try:
            yield engine
        except Exception:
            audit.flush(durable_only=True)
            raise
        save_engine(engine)
        audit.flush()
