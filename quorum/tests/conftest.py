import pytest

from quorum import config
from quorum.engine import AuthorizationEngine
from quorum.executor import CallableExecutor, ExecutionResult
from quorum.registry import PrincipalRegistry

A, B, C, D = "alice", "bob", "carol", "dave"


class RecordingExecutor(CallableExecutor):
    def __init__(self, success=True):
        self.calls = []
        self.success = success
        super().__init__(self._record)

    def _record(self, target, value, payload):
        self.calls.append((target, value, payload))
        if self.success:
            return ExecutionResult(success=True, output="ok")
        return ExecutionResult(success=False, error="target reverted")


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def engine(executor):
    return AuthorizationEngine(PrincipalRegistry([A, B, C], 2), executor=executor)


@pytest.fixture
def wallet_home(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "BASE_DIR", tmp_path)
    monkeypatch.setattr(config, "STATE_FILE", tmp_path / "state.yaml")
    monkeypatch.setattr(config, "LOCK_DIR", tmp_path / "locks")
    monkeypatch.setattr(config, "DB_FILE", tmp_path / "quorum.db")
    monkeypatch.setattr(config, "AUDIT_LOG_FILE", tmp_path / "audit.log")
    monkeypatch.setattr(config, "OUTBOX_FILE", tmp_path / "outbox.jsonl")
    monkeypatch.setattr(config, "API_TOKEN_FILE", tmp_path / "api_tokens.txt")
    monkeypatch.setattr(config, "DEFAULT_EXECUTOR", "outbox")
    monkeypatch.delenv(config.API_TOKEN_ENV, raising=False)
    return tmp_path
