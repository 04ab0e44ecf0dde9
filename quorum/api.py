"""FastAPI wrapper around the wallet for principals via HTTP."""

from decimal import Decimal
from typing import Optional

try:
    from fastapi import Depends, FastAPI, Header, HTTPException
    from pydantic import BaseModel, Field
except ImportError as exc:  # pragma: no cover
    raise SystemExit(
        "FastAPI not installed. Install with: pip install 'quorum-wallet[api]'\n"
        "You can still use the CLI via `python -m quorum.cli`."
    ) from exc

from .auth import resolve_principal
from .db import list_events
from .errors import (
    ActionFailed,
    InsufficientApprovals,
    InvalidArgument,
    InvalidState,
    QuorumError,
    UnauthorizedCaller,
    UnknownProposal,
)
from .executor import build_executor
from .utils import normalize_amount, parse_payload
from .wallet import load_engine, open_wallet


def require_principal(x_api_token: Optional[str] = Header(None)) -> str:
    principal = resolve_principal(x_api_token)
    if principal is None:
        raise HTTPException(status_code=401, detail="Invalid or missing API token")
    return principal


def to_http_error(exc: QuorumError) -> HTTPException:
    if isinstance(exc, UnauthorizedCaller):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, UnknownProposal):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InsufficientApprovals):
        return HTTPException(
            status_code=409,
            detail={"error": str(exc), "required": exc.required, "current": exc.current},
        )
    if isinstance(exc, InvalidState):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ActionFailed):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, InvalidArgument):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _wallet_missing(exc: FileNotFoundError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(exc))


class ProposalIn(BaseModel):
    target: str
    value: Decimal = Field(default=Decimal(0))
    data: str = ""


class DepositIn(BaseModel):
    amount: Decimal
    sender: Optional[str] = None


class ExecuteIn(BaseModel):
    executor: Optional[str] = None


app = FastAPI(title="Quorum API", version="0.1.0")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/wallet")
def get_wallet(_: str = Depends(require_principal)):
    try:
        engine = load_engine()
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    return {
        "principals": list(engine.principals),
        "threshold": engine.threshold,
        "proposal_count": engine.proposal_count,
    }


@app.get("/proposals")
def get_proposals(_: str = Depends(require_principal)):
    try:
        engine = load_engine()
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    return [engine.status(p.index) for p in engine.proposals()]


@app.get("/proposals/{index}")
def get_proposal(index: int, _: str = Depends(require_principal)):
    try:
        engine = load_engine()
        return engine.status(index)
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)


@app.post("/proposals")
def create_proposal(body: ProposalIn, principal: str = Depends(require_principal)):
    try:
        payload = parse_payload(body.data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        with open_wallet() as engine:
            index = engine.submit(principal, body.target, normalize_amount(body.value), payload)
            return engine.status(index)
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)


@app.post("/proposals/{index}/approve")
def approve_proposal(index: int, principal: str = Depends(require_principal)):
    try:
        with open_wallet() as engine:
            engine.approve(principal, index)
            return engine.status(index)
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)


@app.post("/proposals/{index}/revoke")
def revoke_proposal(index: int, principal: str = Depends(require_principal)):
    try:
        with open_wallet() as engine:
            engine.revoke(principal, index)
            return engine.status(index)
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)


@app.post("/proposals/{index}/execute")
def execute_proposal(
    index: int,
    body: Optional[ExecuteIn] = None,
    principal: str = Depends(require_principal),
):
    try:
        executor = build_executor(body.executor if body else None)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        with open_wallet(executor) as engine:
            result = engine.execute(principal, index)
            return {"proposal": engine.status(index), "result": result.to_dict()}
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)


@app.post("/deposits")
def create_deposit(body: DepositIn, principal: str = Depends(require_principal)):
    sender = body.sender or principal
    try:
        with open_wallet() as engine:
            engine.deposit(sender, normalize_amount(body.amount))
    except FileNotFoundError as exc:
        raise _wallet_missing(exc)
    except QuorumError as exc:
        raise to_http_error(exc)
    return {"sender": sender, "amount": str(body.amount)}


@app.get("/events")
def get_events(limit: int = 50, index: Optional[int] = None, _: str = Depends(require_principal)):
    return list_events(limit=limit, proposal_index=index)
