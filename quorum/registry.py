from typing import Any, Dict, Iterable, List, Tuple

from .errors import (
    DuplicatePrincipal,
    EmptyPrincipalSet,
    InvalidPrincipal,
    InvalidThreshold,
)


def _valid_identity(principal: Any) -> bool:
    return isinstance(principal, str) and bool(principal.strip())


class PrincipalRegistry:
    """Fixed committee of principals and the number of approvals it requires."""

    __slots__ = ("_principals", "_members", "_threshold")

    def __init__(self, principals: Iterable[str], threshold: int) -> None:
        ordered: List[str] = list(principals) if principals is not None else []
        if not ordered:
            raise EmptyPrincipalSet()

        seen = set()
        for principal in ordered:
            if not _valid_identity(principal):
                raise InvalidPrincipal(principal)
            if principal in seen:
                raise DuplicatePrincipal(principal)
            seen.add(principal)

        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise InvalidThreshold(threshold, len(ordered))
        if threshold < 1 or threshold > len(ordered):
            raise InvalidThreshold(threshold, len(ordered))

        self._principals: Tuple[str, ...] = tuple(ordered)
        self._members = frozenset(ordered)
        self._threshold = threshold

    @property
    def principals(self) -> Tuple[str, ...]:
        return self._principals

    @property
    def threshold(self) -> int:
        return self._threshold

    def is_principal(self, principal: Any) -> bool:
        try:
            return principal in self._members
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._principals)

    def __repr__(self) -> str:
        return f"PrincipalRegistry({list(self._principals)!r}, threshold={self._threshold})"

    def to_dict(self) -> Dict[str, Any]:
        return {"principals": list(self._principals), "threshold": self._threshold}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrincipalRegistry":
        return cls(data.get("principals", []), data.get("threshold", 0))
