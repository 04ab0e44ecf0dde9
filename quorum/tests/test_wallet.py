import json

import pytest
import yaml

from quorum import config
from quorum.db import list_events
from quorum.errors import ActionFailed, InvalidThreshold
from quorum.executor import CallableExecutor, ExecutionResult, OutboxExecutor, build_executor
from quorum.wallet import init_wallet, load_committee, load_engine, open_wallet


def test_init_and_reload(wallet_home):
    init_wallet(["alice", "bob", "carol"], 2)
    engine = load_engine()
    assert engine.principals == ("alice", "bob", "carol")
    assert engine.threshold == 2
    assert engine.proposal_count == 0


def test_init_refuses_to_overwrite(wallet_home):
    init_wallet(["alice"], 1)
    with pytest.raises(FileExistsError):
        init_wallet(["bob"], 1)


def test_init_with_bad_committee_writes_nothing(wallet_home):
    with pytest.raises(InvalidThreshold):
        init_wallet(["alice", "bob"], 3)
    assert not config.STATE_FILE.exists()


def test_load_without_wallet(wallet_home):
    with pytest.raises(FileNotFoundError):
        load_engine()


def test_committee_file(wallet_home):
    path = wallet_home / "committee.yaml"
    path.write_text(yaml.safe_dump({"principals": ["a", "b"], "threshold": 2}))
    registry = load_committee(path)
    assert registry.principals == ("a", "b")
    assert registry.threshold == 2


def test_open_wallet_persists_changes(wallet_home):
    init_wallet(["alice", "bob", "carol"], 2)
    with open_wallet() as engine:
        engine.submit("alice", "mock", 4, b"\x01")
        engine.approve("alice", 0)

    engine = load_engine()
    assert engine.proposal(0).payload == b"\x01"
    assert engine.is_approved(0, "alice")


def test_failed_operation_is_not_saved(wallet_home):
    init_wallet(["alice", "bob"], 1)
    with pytest.raises(ValueError):
        with open_wallet() as engine:
            engine.submit("alice", "mock", 0, b"")
            engine.approve("mallory", 0)
    assert load_engine().proposal_count == 0


def test_rolled_back_operations_are_not_audited(wallet_home):
    init_wallet(["alice", "bob"], 1)
    with pytest.raises(ValueError):
        with open_wallet() as engine:
            engine.submit("alice", "first", 0, b"")
            engine.approve("mallory", 0)
    with open_wallet() as engine:
        engine.submit("alice", "second", 0, b"")

    submitted = [(ev["index"], ev["principal"]) for ev in list_events() if ev["event"] == "submitted"]
    assert submitted == [(0, "alice")]
    lines = config.AUDIT_LOG_FILE.read_text().splitlines()
    assert len(lines) == 1


def test_failed_save_leaves_audit_empty(wallet_home, monkeypatch):
    init_wallet(["alice"], 1)

    def broken(*_):
        raise OSError("disk full")

    monkeypatch.setattr("quorum.wallet.dump_yaml", broken)
    with pytest.raises(OSError):
        with open_wallet() as engine:
            engine.submit("alice", "mock", 0, b"")
    assert list_events() == []


def test_failed_action_audits_saved_events_only(wallet_home):
    init_wallet(["alice"], 1)
    failing = CallableExecutor(lambda *_: ExecutionResult(success=False, error="reverted"))
    with pytest.raises(ActionFailed):
        with open_wallet(failing) as engine:
            engine.submit("alice", "mock", 0, b"")
            engine.approve("alice", 0)
            engine.execute("alice", 0)

    events = [ev["event"] for ev in reversed(list_events())]
    assert events == ["submitted", "approved", "execution_failed"]


def test_failed_action_stays_executed_on_disk(wallet_home):
    init_wallet(["alice"], 1)
    with open_wallet() as engine:
        engine.submit("alice", "mock", 0, b"")
        engine.approve("alice", 0)

    failing = CallableExecutor(lambda *_: ExecutionResult(success=False, error="reverted"))
    with pytest.raises(ActionFailed):
        with open_wallet(failing) as engine:
            engine.execute("alice", 0)

    assert load_engine().proposal(0).executed is True


def test_state_is_saved_before_action_runs(wallet_home):
    init_wallet(["alice"], 1)
    with open_wallet() as engine:
        engine.submit("alice", "mock", 0, b"")
        engine.approve("alice", 0)

    seen = []

    def inspect(target, value, payload):
        data = yaml.safe_load(config.STATE_FILE.read_text())
        seen.append(data["proposals"][0]["executed"])
        return True

    with open_wallet(CallableExecutor(inspect)) as engine:
        engine.execute("alice", 0)
    assert seen == [True]


def test_events_are_audited(wallet_home):
    init_wallet(["alice", "bob"], 1)
    with open_wallet() as engine:
        engine.submit("alice", "mock", 0, b"")
        engine.approve("bob", 0)
        engine.deposit("funder", 3)

    lines = [json.loads(line) for line in config.AUDIT_LOG_FILE.read_text().splitlines()]
    assert [entry["event"] for entry in lines] == ["submitted", "approved", "deposited"]
    assert lines[2]["amount"] == "3"

    events = list_events(limit=10)
    assert [ev["event"] for ev in events] == ["deposited", "approved", "submitted"]
    assert events[1]["principal"] == "bob"
    assert list_events(proposal_index=0)[0]["event"] == "approved"


def test_outbox_executor(wallet_home):
    init_wallet(["alice"], 1)
    with open_wallet(OutboxExecutor()) as engine:
        engine.submit("alice", "payments", 9, b"\xbe\xef")
        engine.approve("alice", 0)
        engine.execute("alice", 0)

    entries = [json.loads(line) for line in config.OUTBOX_FILE.read_text().splitlines()]
    assert len(entries) == 1
    assert entries[0]["target"] == "payments"
    assert entries[0]["value"] == "9"
    assert entries[0]["payload"] == "beef"


def test_build_executor(wallet_home):
    assert build_executor("outbox").name == "outbox"
    assert build_executor("command").name == "command"
    assert build_executor().name == "outbox"
    with pytest.raises(ValueError):
        build_executor("telepathy")
