from typing import Any, Dict, Iterable, List, Set


class ApprovalLedger:
    """Sparse (proposal index, principal) -> approved relation.

    Only approved pairs are stored; every other pair reads as False. No
    validation happens here, the engine is responsible for that.
    """

    def __init__(self) -> None:
        self._approvals: Dict[int, Set[str]] = {}

    def is_approved(self, index: int, principal: str) -> bool:
        return principal in self._approvals.get(index, ())

    def set_approved(self, index: int, principal: str, value: bool) -> None:
        if value:
            self._approvals.setdefault(index, set()).add(principal)
            return
        approved = self._approvals.get(index)
        if approved is not None:
            approved.discard(principal)
            if not approved:
                del self._approvals[index]

    def count_approvals(self, index: int, principals: Iterable[str]) -> int:
        return sum(1 for p in principals if self.is_approved(index, p))

    def approvers(self, index: int, principals: Iterable[str]) -> List[str]:
        return [p for p in principals if self.is_approved(index, p)]

    def to_dict(self) -> Dict[int, List[str]]:
        return {index: sorted(approved) for index, approved in sorted(self._approvals.items())}

    @classmethod
    def from_dict(cls, data: Dict[Any, Iterable[str]]) -> "ApprovalLedger":
        ledger = cls()
        for index, principals in (data or {}).items():
            for principal in principals:
                ledger.set_approved(int(index), principal, True)
        return ledger
