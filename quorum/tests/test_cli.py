import json

import pytest
import yaml

from quorum import config
from quorum.cli import main
from quorum.wallet import load_engine


def run(*argv):
    main(list(argv))


@pytest.fixture
def wallet(wallet_home):
    run("init", "--principal", "alice", "--principal", "bob", "--principal", "carol", "--threshold", "2")
    return wallet_home


def test_init_prints_committee(wallet_home, capsys):
    run("init", "--principal", "alice", "--principal", "bob", "--threshold", "1")
    out = capsys.readouterr().out
    assert "alice, bob" in out
    assert "1 of 2" in out


def test_init_from_committee_file(wallet_home):
    path = wallet_home / "committee.yaml"
    path.write_text(yaml.safe_dump({"principals": ["x", "y", "z"], "threshold": 3}))
    run("init", "--committee", str(path))
    assert load_engine().threshold == 3


def test_init_with_invalid_threshold_exits(wallet_home):
    with pytest.raises(SystemExit) as info:
        run("init", "--principal", "alice", "--threshold", "2")
    assert "Threshold" in str(info.value)


def test_full_flow(wallet, capsys):
    run("submit", "--by", "alice", "--target", "payments", "--value", "5", "--data", "0xbeef")
    run("approve", "0", "--by", "alice")
    run("approve", "0", "--by", "bob")
    run("execute", "0", "--by", "carol")
    out = capsys.readouterr().out
    assert "Submitted proposal 0" in out
    assert "(2/2)" in out
    assert "EXECUTED proposal 0 by carol via outbox" in out

    engine = load_engine()
    assert engine.proposal(0).executed is True
    assert engine.proposal(0).value == 5
    entry = json.loads(config.OUTBOX_FILE.read_text().splitlines()[0])
    assert entry["payload"] == "beef"


def test_fractional_value(wallet):
    run("submit", "--by", "alice", "--target", "payments", "--value", "0.25")
    assert str(load_engine().proposal(0).value) == "0.25"


def test_execute_below_threshold_exits(wallet):
    run("submit", "--by", "alice", "--target", "payments")
    run("approve", "0", "--by", "bob")
    run("revoke", "0", "--by", "bob")
    run("approve", "0", "--by", "carol")
    with pytest.raises(SystemExit) as info:
        run("execute", "0", "--by", "alice")
    assert "1 of 2" in str(info.value)
    assert load_engine().proposal(0).executed is False


def test_non_principal_exits(wallet):
    with pytest.raises(SystemExit) as info:
        run("submit", "--by", "dave", "--target", "payments")
    assert "dave" in str(info.value)
    assert load_engine().proposal_count == 0


def test_double_approve_exits(wallet):
    run("submit", "--by", "alice", "--target", "payments")
    run("approve", "0", "--by", "alice")
    with pytest.raises(SystemExit):
        run("approve", "0", "--by", "alice")


def test_bad_payload_exits(wallet):
    with pytest.raises(SystemExit):
        run("submit", "--by", "alice", "--target", "payments", "--data", "zz")


def test_show_list_status_and_audit(wallet, capsys):
    run("submit", "--by", "alice", "--target", "payments", "--data", "ab")
    run("approve", "0", "--by", "bob")
    run("deposit", "10", "--sender", "funder")
    capsys.readouterr()

    run("show", "0")
    out = capsys.readouterr().out
    assert "payload: 0xab" in out
    assert "approvals: 1/2 (bob)" in out
    assert "executable: no" in out

    run("list")
    assert "0 [open] 1/2 target=payments" in capsys.readouterr().out

    run("status")
    assert "threshold: 2 of 3" in capsys.readouterr().out

    run("audit", "--limit", "5")
    out = capsys.readouterr().out
    assert "deposited" in out
    assert "approved proposal=0 principal=bob" in out


def test_commands_without_wallet_exit(wallet_home):
    with pytest.raises(SystemExit) as info:
        run("list")
    assert "quorum init" in str(info.value)
