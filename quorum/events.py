from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .utils import utc_now


class EventKind(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REVOKED = "revoked"
    EXECUTED = "executed"
    EXECUTION_FAILED = "execution_failed"
    DEPOSITED = "deposited"


@dataclass(frozen=True)
class Notification:
    kind: EventKind
    index: Optional[int] = None
    principal: Optional[str] = None
    amount: Any = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"event": self.kind.value, "timestamp": self.timestamp}
        if self.index is not None:
            out["index"] = self.index
        if self.principal is not None:
            out["principal"] = self.principal
        if self.amount is not None:
            out["amount"] = str(self.amount)
        if self.data:
            out["data"] = dict(self.data)
        return out


Listener = Callable[[Notification], None]


def submitted(index: int, by: str) -> Notification:
    return Notification(EventKind.SUBMITTED, index=index, principal=by)


def approved(principal: str, index: int) -> Notification:
    return Notification(EventKind.APPROVED, index=index, principal=principal)


def revoked(principal: str, index: int) -> Notification:
    return Notification(EventKind.REVOKED, index=index, principal=principal)


def executed(index: int, by: str) -> Notification:
    return Notification(EventKind.EXECUTED, index=index, principal=by)


def execution_failed(index: int, by: str, reason: Optional[str]) -> Notification:
    return Notification(
        EventKind.EXECUTION_FAILED, index=index, principal=by, data={"reason": reason}
    )


def deposited(sender: str, amount: Any) -> Notification:
    return Notification(EventKind.DEPOSITED, principal=sender, amount=amount)
