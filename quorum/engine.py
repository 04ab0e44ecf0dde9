"""Approval state machine for an M-of-N committee.

Proposals move from ``open`` to ``executed`` exactly once. Execution marks the
proposal before the executor is invoked, so a failing or re-entrant action can
never run twice; a failed action leaves the proposal executed.

Listeners for submit, approve and revoke run while the operation's lock is
held, so observers see notifications for one proposal in the order the state
changed. Listeners must not call back into the engine.
"""

import logging
import math
import threading
from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from . import events
from .errors import (
    ActionFailed,
    AlreadyApproved,
    InsufficientApprovals,
    InvalidArgument,
    InvalidState,
    NotApproved,
    UnauthorizedCaller,
)
from .events import Listener, Notification
from .executor import ActionExecutor, ExecutionResult, OutboxExecutor
from .ledger import ApprovalLedger
from .registry import PrincipalRegistry
from .state import ProposalState, can_transition
from .storage import Amount, Proposal, ProposalStore

logger = logging.getLogger(__name__)


def _check_amount(value: Any, what: str) -> Amount:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidArgument(f"{what} must be an int, float or Decimal, got {value!r}")
    if isinstance(value, Decimal):
        finite = value.is_finite()
    else:
        finite = math.isfinite(value)
    if not finite:
        raise InvalidArgument(f"{what} must be a finite number, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{what} must not be negative, got {value!r}")
    return value


class AuthorizationEngine:
    def __init__(
        self,
        registry: PrincipalRegistry,
        executor: Optional[ActionExecutor] = None,
        store: Optional[ProposalStore] = None,
        ledger: Optional[ApprovalLedger] = None,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> None:
        self.registry = registry
        self.executor = executor or OutboxExecutor()
        # Called after a proposal is marked executed and before its action runs.
        self.checkpoint = checkpoint
        self._store = store if store is not None else ProposalStore()
        self._ledger = ledger if ledger is not None else ApprovalLedger()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        self._proposal_locks: Dict[int, threading.Lock] = {}

    # -- notifications -------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, notification: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Listener failed for %s event", notification.kind.value)

    # -- helpers -------------------------------------------------------

    def _require_principal(self, caller: Any) -> None:
        if not self.registry.is_principal(caller):
            logger.debug("Rejected non-principal caller %r", caller)
            raise UnauthorizedCaller(caller)

    def _proposal_lock(self, index: int) -> threading.Lock:
        with self._lock:
            lock = self._proposal_locks.get(index)
            if lock is None:
                lock = self._proposal_locks[index] = threading.Lock()
            return lock

    def _open_proposal(self, index: int) -> Proposal:
        proposal = self._store.get(index)
        if not can_transition(proposal.state, ProposalState.EXECUTED):
            raise InvalidState(index)
        return proposal

    # -- operations ----------------------------------------------------

    def submit(self, caller: str, target: str, value: Amount, payload: bytes = b"") -> int:
        self._require_principal(caller)
        if not isinstance(target, str) or not target.strip():
            raise InvalidArgument(f"Target must be a non-empty string, got {target!r}")
        value = _check_amount(value, "Value")
        if not isinstance(payload, (bytes, bytearray)):
            raise InvalidArgument(f"Payload must be bytes, got {type(payload).__name__}")

        with self._lock:
            index = self._store.append(target, value, bytes(payload), submitted_by=caller)
            logger.info("Proposal %d submitted by %s (target=%s)", index, caller, target)
            self._emit(events.submitted(index, caller))
        return index

    def approve(self, caller: str, index: int) -> None:
        self._require_principal(caller)
        self._store.get(index)
        with self._proposal_lock(index):
            self._open_proposal(index)
            if self._ledger.is_approved(index, caller):
                raise AlreadyApproved(index, caller)
            self._ledger.set_approved(index, caller, True)
            logger.info("Proposal %d approved by %s", index, caller)
            self._emit(events.approved(caller, index))

    def revoke(self, caller: str, index: int) -> None:
        self._require_principal(caller)
        self._store.get(index)
        with self._proposal_lock(index):
            self._open_proposal(index)
            if not self._ledger.is_approved(index, caller):
                raise NotApproved(index, caller)
            self._ledger.set_approved(index, caller, False)
            logger.info("Proposal %d approval revoked by %s", index, caller)
            self._emit(events.revoked(caller, index))

    def execute(self, caller: str, index: int) -> ExecutionResult:
        self._require_principal(caller)
        self._store.get(index)
        with self._proposal_lock(index):
            proposal = self._open_proposal(index)
            required = self.registry.threshold
            current = self._ledger.count_approvals(index, self.registry.principals)
            if current < required:
                logger.debug("Proposal %d has %d of %d approvals", index, current, required)
                raise InsufficientApprovals(required, current)

            self._store.mark_executed(index)
            if self.checkpoint is not None:
                try:
                    self.checkpoint()
                except Exception:
                    # Nothing has run yet; undo the mark so the failure leaves no trace.
                    proposal.executed = False
                    raise

        logger.info("Proposal %d executing by %s (%d/%d approvals)", index, caller, current, required)
        try:
            result = self.executor.perform(proposal.target, proposal.value, proposal.payload)
        except Exception as exc:
            logger.warning("Action for proposal %d raised: %s", index, exc)
            self._emit(events.execution_failed(index, caller, str(exc)))
            raise ActionFailed(index, str(exc)) from exc

        if not result.success:
            logger.warning("Action for proposal %d failed: %s", index, result.error)
            self._emit(events.execution_failed(index, caller, result.error))
            raise ActionFailed(index, result.error)

        self._emit(events.executed(index, caller))
        return result

    def deposit(self, sender: str, amount: Amount) -> None:
        if not isinstance(sender, str) or not sender.strip():
            raise InvalidArgument(f"Sender must be a non-empty string, got {sender!r}")
        amount = _check_amount(amount, "Amount")
        logger.info("Deposit of %s from %s", amount, sender)
        self._emit(events.deposited(sender, amount))

    # -- queries -------------------------------------------------------

    @property
    def principals(self):
        return self.registry.principals

    @property
    def threshold(self) -> int:
        return self.registry.threshold

    @property
    def proposal_count(self) -> int:
        return self._store.count

    def is_principal(self, principal: Any) -> bool:
        return self.registry.is_principal(principal)

    def proposal(self, index: int) -> Proposal:
        return replace(self._store.get(index))

    def proposals(self) -> List[Proposal]:
        return [replace(p) for p in self._store]

    def is_approved(self, index: int, principal: str) -> bool:
        self._store.get(index)
        return self._ledger.is_approved(index, principal)

    def approval_count(self, index: int) -> int:
        self._store.get(index)
        return self._ledger.count_approvals(index, self.registry.principals)

    def approvers(self, index: int) -> List[str]:
        self._store.get(index)
        return self._ledger.approvers(index, self.registry.principals)

    def status(self, index: int) -> Dict[str, Any]:
        proposal = self._store.get(index)
        approvers = self._ledger.approvers(index, self.registry.principals)
        data = proposal.to_dict()
        data.update(
            {
                "approvals": len(approvers),
                "approvers": approvers,
                "required": self.registry.threshold,
                "executable": not proposal.executed
                and len(approvers) >= self.registry.threshold,
            }
        )
        return data

    # -- snapshot ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "registry": self.registry.to_dict(),
                "proposals": self._store.to_dict(),
                "approvals": self._ledger.to_dict(),
            }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        executor: Optional[ActionExecutor] = None,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> "AuthorizationEngine":
        return cls(
            PrincipalRegistry.from_dict(data.get("registry", {})),
            executor=executor,
            store=ProposalStore.from_dict(data.get("proposals", [])),
            ledger=ApprovalLedger.from_dict(data.get("approvals", {})),
            checkpoint=checkpoint,
        )
