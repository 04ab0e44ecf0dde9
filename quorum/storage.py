from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Union

from .errors import UnknownProposal
from .state import ProposalState, state_of
from .utils import utc_now

Amount = Union[int, float, Decimal]


@dataclass
class Proposal:
    index: int
    target: str
    value: Amount
    payload: bytes
    executed: bool = False
    submitted_by: Optional[str] = None
    submitted_at: Optional[str] = field(default_factory=utc_now)

    @property
    def state(self) -> ProposalState:
        return state_of(self.executed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "target": self.target,
            "value": _dump_amount(self.value),
            "payload": self.payload.hex(),
            "executed": self.executed,
            "state": self.state.value,
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        return cls(
            index=int(data["index"]),
            target=data["target"],
            value=_load_amount(data.get("value", 0)),
            payload=bytes.fromhex(data.get("payload") or ""),
            executed=bool(data.get("executed", False)),
            submitted_by=data.get("submitted_by"),
            submitted_at=data.get("submitted_at"),
        )


def _dump_amount(value: Amount) -> Any:
    # Decimal is not a YAML scalar; keep its exact text.
    if isinstance(value, Decimal):
        return str(value)
    return value


def _load_amount(raw: Any) -> Amount:
    if isinstance(raw, str):
        return Decimal(raw)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return raw
    raise ValueError(f"Invalid proposal value: {raw!r}")


class ProposalStore:
    """Append-only log of proposals addressed by their submission index."""

    def __init__(self, proposals: Optional[List[Proposal]] = None) -> None:
        self._proposals: List[Proposal] = list(proposals or [])

    def append(
        self,
        target: str,
        value: Amount,
        payload: bytes,
        submitted_by: Optional[str] = None,
    ) -> int:
        index = len(self._proposals)
        self._proposals.append(
            Proposal(
                index=index,
                target=target,
                value=value,
                payload=bytes(payload),
                submitted_by=submitted_by,
            )
        )
        return index

    def get(self, index: int) -> Proposal:
        if isinstance(index, bool) or not isinstance(index, int):
            raise UnknownProposal(index)
        if index < 0 or index >= len(self._proposals):
            raise UnknownProposal(index)
        return self._proposals[index]

    def mark_executed(self, index: int) -> None:
        self.get(index).executed = True

    @property
    def count(self) -> int:
        return len(self._proposals)

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(list(self._proposals))

    def to_dict(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self._proposals]

    @classmethod
    def from_dict(cls, data: List[Dict[str, Any]]) -> "ProposalStore":
        proposals = sorted((Proposal.from_dict(item) for item in data or []), key=lambda p: p.index)
        for expected, proposal in enumerate(proposals):
            if proposal.index != expected:
                raise ValueError(f"Proposal log has a gap at index {expected}")
        return cls(proposals)
