import argparse
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from . import config
from .errors import QuorumError
from .executor import build_executor
from .utils import normalize_amount, parse_payload
from .wallet import init_wallet, load_committee, load_engine, open_wallet


def parse_amount(raw: str) -> Decimal:
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {raw!r}")
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite number: {raw!r}")
    return amount


def handle_init(args: argparse.Namespace) -> None:
    if args.committee:
        registry = load_committee(Path(args.committee))
        principals, threshold = list(registry.principals), registry.threshold
    else:
        principals, threshold = args.principal or [], args.threshold
    engine = init_wallet(principals, threshold)
    print(f"Created wallet at {config.STATE_FILE}")
    print(f"  principals: {', '.join(engine.principals)}")
    print(f"  threshold:  {engine.threshold} of {len(engine.principals)}")


def handle_submit(args: argparse.Namespace) -> None:
    payload = parse_payload(args.data or "")
    with open_wallet() as engine:
        index = engine.submit(args.by, args.target, normalize_amount(args.value), payload)
    print(f"Submitted proposal {index}")
    print(f"  target:  {args.target}")
    print(f"  value:   {args.value}")
    print(f"  payload: 0x{payload.hex()}")


def handle_approve(args: argparse.Namespace) -> None:
    with open_wallet() as engine:
        engine.approve(args.by, args.index)
        count = engine.approval_count(args.index)
    print(f"APPROVED proposal {args.index} by {args.by} ({count}/{engine.threshold})")


def handle_revoke(args: argparse.Namespace) -> None:
    with open_wallet() as engine:
        engine.revoke(args.by, args.index)
        count = engine.approval_count(args.index)
    print(f"REVOKED approval on proposal {args.index} by {args.by} ({count}/{engine.threshold})")


def handle_execute(args: argparse.Namespace) -> None:
    executor = build_executor(args.executor)
    with open_wallet(executor) as engine:
        result = engine.execute(args.by, args.index)
    print(f"EXECUTED proposal {args.index} by {args.by} via {executor.name}")
    if result.output:
        print(f"Output: {result.output}")


def handle_deposit(args: argparse.Namespace) -> None:
    with open_wallet() as engine:
        engine.deposit(args.sender, normalize_amount(args.amount))
    print(f"Recorded deposit of {args.amount} from {args.sender}")


def handle_show(args: argparse.Namespace) -> None:
    engine = load_engine()
    status = engine.status(args.index)
    for key in ("index", "target", "value", "state", "submitted_by", "submitted_at"):
        print(f"{key}: {status[key]}")
    print(f"payload: 0x{status['payload']}")
    print(f"approvals: {status['approvals']}/{status['required']} ({', '.join(status['approvers']) or 'none'})")
    print(f"executable: {'yes' if status['executable'] else 'no'}")


def handle_list(_: argparse.Namespace) -> None:
    engine = load_engine()
    proposals = engine.proposals()
    if not proposals:
        print("No proposals recorded.")
        return
    for p in proposals:
        count = engine.approval_count(p.index)
        print(f"{p.index} [{p.state.value}] {count}/{engine.threshold} target={p.target} value={p.value}")


def handle_status(_: argparse.Namespace) -> None:
    engine = load_engine()
    print(f"wallet: {config.STATE_FILE}")
    print(f"principals: {', '.join(engine.principals)}")
    print(f"threshold: {engine.threshold} of {len(engine.principals)}")
    print(f"proposals: {engine.proposal_count}")


def handle_audit(args: argparse.Namespace) -> None:
    from .db import list_events

    events = list_events(limit=args.limit, proposal_index=args.index)
    if not events:
        print("No audit events.")
        return
    for ev in events:
        index = "-" if ev["index"] is None else ev["index"]
        print(f"{ev['timestamp']} {ev['event']} proposal={index} principal={ev['principal']} data={ev['data']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quorum M-of-N authorization wallet CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (e.g. INFO, DEBUG)")
    sub = parser.add_subparsers(dest="command")

    init = sub.add_parser("init", help="Create a wallet with a fixed committee")
    init.add_argument("--principal", action="append", help="Committee member (repeatable)")
    init.add_argument("--threshold", type=int, default=0, help="Approvals required to execute")
    init.add_argument("--committee", help="YAML/JSON file with principals and threshold")
    init.set_defaults(func=handle_init)

    submit = sub.add_parser("submit", help="Submit a proposal")
    submit.add_argument("--by", required=True, help="Submitting principal")
    submit.add_argument("--target", required=True, help="Action destination")
    submit.add_argument("--value", type=parse_amount, default=Decimal(0), help="Amount to send")
    submit.add_argument("--data", default="", help="Hex-encoded payload")
    submit.set_defaults(func=handle_submit)

    for name, func, help_text in (
        ("approve", handle_approve, "Approve a proposal"),
        ("revoke", handle_revoke, "Revoke your approval of a proposal"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("index", type=int)
        cmd.add_argument("--by", required=True, help="Acting principal")
        cmd.set_defaults(func=func)

    execute = sub.add_parser("execute", help="Execute a proposal that reached the threshold")
    execute.add_argument("index", type=int)
    execute.add_argument("--by", required=True, help="Acting principal")
    execute.add_argument(
        "--executor",
        choices=["outbox", "command"],
        help=f"How to carry out the action (default: {config.DEFAULT_EXECUTOR})",
    )
    execute.set_defaults(func=handle_execute)

    deposit = sub.add_parser("deposit", help="Record a deposit into the wallet")
    deposit.add_argument("amount", type=parse_amount)
    deposit.add_argument("--sender", required=True, help="Depositing party")
    deposit.set_defaults(func=handle_deposit)

    show = sub.add_parser("show", help="Show proposal details")
    show.add_argument("index", type=int)
    show.set_defaults(func=handle_show)

    list_cmd = sub.add_parser("list", help="List proposals")
    list_cmd.set_defaults(func=handle_list)

    status_cmd = sub.add_parser("status", help="Show committee and wallet summary")
    status_cmd.set_defaults(func=handle_status)

    audit_cmd = sub.add_parser("audit", help="Show recent audit events")
    audit_cmd.add_argument("--limit", type=int, default=50, help="Number of events to show")
    audit_cmd.add_argument("--index", type=int, help="Only events for this proposal")
    audit_cmd.set_defaults(func=handle_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except (QuorumError, ValueError, FileNotFoundError, FileExistsError) as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
