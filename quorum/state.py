from enum import Enum
from typing import Dict, List


class ProposalState(str, Enum):
    OPEN = "open"
    EXECUTED = "executed"


ALLOWED_TRANSITIONS: Dict[ProposalState, List[ProposalState]] = {
    ProposalState.OPEN: [ProposalState.EXECUTED],
    ProposalState.EXECUTED: [],
}


def can_transition(current: ProposalState, target: ProposalState) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])


def state_of(executed: bool) -> ProposalState:
    return ProposalState.EXECUTED if executed else ProposalState.OPEN

