"""Executors carry out the side effect of an approved proposal.

The engine treats ``perform`` as a synchronous, fallible boundary call. An
executor reports failure through ``ExecutionResult.success``; an exception
raised from ``perform`` is treated the same way by the engine.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from . import config
from .storage import Amount
from .utils import ensure_dir, file_lock, utc_now


@dataclass
class ExecutionResult:
    success: bool
    output: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "output": self.output, "error": self.error}


class ActionExecutor:
    name = "base"

    def perform(self, target: str, value: Amount, payload: bytes) -> ExecutionResult:
        raise NotImplementedError


class CallableExecutor(ActionExecutor):
    """Wrap a plain function ``fn(target, value, payload)``.

    A falsy return value counts as failure, anything else as success with the
    return value as output.
    """

    name = "callable"

    def __init__(self, fn: Callable[[str, Amount, bytes], Any]) -> None:
        self.fn = fn

    def perform(self, target: str, value: Amount, payload: bytes) -> ExecutionResult:
        out = self.fn(target, value, payload)
        if isinstance(out, ExecutionResult):
            return out
        if out is False or out is None:
            return ExecutionResult(success=False, error="action returned no result")
        return ExecutionResult(success=True, output=out)


class OutboxExecutor(ActionExecutor):
    """Hand approved actions to a downstream worker through a JSON-lines outbox."""

    name = "outbox"

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path

    def perform(self, target: str, value: Amount, payload: bytes) -> ExecutionResult:
        path = self.path or config.OUTBOX_FILE
        ensure_dir(path.parent)
        entry = {
            "timestamp": utc_now(),
            "target": target,
            "value": str(value),
            "payload": payload.hex(),
        }
        with file_lock(config.LOCK_DIR / "outbox.lock"):
            with path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False))
                f.write("\n")
        return ExecutionResult(success=True, output=str(path))


def build_executor(name: Optional[str] = None) -> ActionExecutor:
    kind = (name or config.DEFAULT_EXECUTOR).lower()
    if kind == "outbox":
        return OutboxExecutor()
    if kind == "command":
        from .adapters.command_adapter import CommandExecutor

        return CommandExecutor()
    raise ValueError(f"Unknown executor '{kind}' (expected 'outbox' or 'command')")
