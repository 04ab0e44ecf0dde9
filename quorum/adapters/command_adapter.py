import os
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .. import config
from ..executor import ActionExecutor, ExecutionResult
from ..storage import Amount


def run_command(
    args: List[str],
    stdin: bytes = b"",
    env: Optional[Dict[str, str]] = None,
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    merged = dict(os.environ)
    merged.update(env or {})
    return subprocess.run(
        args,
        input=stdin,
        cwd=cwd,
        env=merged,
        capture_output=True,
        timeout=timeout,
    )


def _timeout_from_env() -> Optional[float]:
    raw = os.environ.get(config.COMMAND_TIMEOUT_ENV)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{config.COMMAND_TIMEOUT_ENV} must be a number, got {raw!r}") from exc


class CommandExecutor(ActionExecutor):
    """Run the proposal target as a command.

    The payload is written to stdin and the value is exported as
    ``QUORUM_VALUE``. A non-zero exit status is a failed action.
    """

    name = "command"

    def __init__(self, cwd: Optional[Path] = None, timeout: Optional[float] = None) -> None:
        self.cwd = cwd
        self.timeout = timeout

    def perform(self, target: str, value: Amount, payload: bytes) -> ExecutionResult:
        args = shlex.split(target)
        if not args:
            return ExecutionResult(success=False, error="empty command")
        timeout = self.timeout if self.timeout is not None else _timeout_from_env()
        try:
            result = run_command(
                args,
                stdin=payload,
                env={"QUORUM_VALUE": str(value), "QUORUM_PAYLOAD_HEX": payload.hex()},
                cwd=self.cwd,
                timeout=timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            return ExecutionResult(success=False, error=str(exc))

        stdout = result.stdout.decode(errors="replace").strip()
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            return ExecutionResult(
                success=False,
                output=stdout,
                error=stderr or f"command exited with status {result.returncode}",
            )
        return ExecutionResult(success=True, output=stdout)
