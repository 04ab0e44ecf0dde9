from typing import Optional


class QuorumError(ValueError):
    """Base class for every rejected wallet operation."""


class ConstructionError(QuorumError):
    pass


class EmptyPrincipalSet(ConstructionError):
    def __init__(self) -> None:
        super().__init__("Principal set must not be empty")


class InvalidThreshold(ConstructionError):
    def __init__(self, threshold: object, principals: int) -> None:
        super().__init__(f"Threshold {threshold!r} must be between 1 and {principals}")
        self.threshold = threshold
        self.principals = principals


class InvalidPrincipal(ConstructionError):
    def __init__(self, principal: object) -> None:
        super().__init__(f"Invalid principal identity: {principal!r}")
        self.principal = principal


class DuplicatePrincipal(ConstructionError):
    def __init__(self, principal: str) -> None:
        super().__init__(f"Duplicate principal: {principal}")
        self.principal = principal


class UnauthorizedCaller(QuorumError):
    def __init__(self, caller: object) -> None:
        super().__init__(f"Caller {caller!r} is not a registered principal")
        self.caller = caller


class UnknownProposal(QuorumError):
    def __init__(self, index: object) -> None:
        super().__init__(f"Proposal {index!r} does not exist")
        self.index = index


class InvalidState(QuorumError):
    def __init__(self, index: int, message: str = "") -> None:
        super().__init__(message or f"Proposal {index} is already executed")
        self.index = index


class AlreadyApproved(InvalidState):
    def __init__(self, index: int, principal: str) -> None:
        super().__init__(index, f"Proposal {index} is already approved by {principal}")
        self.principal = principal


class NotApproved(InvalidState):
    def __init__(self, index: int, principal: str) -> None:
        super().__init__(index, f"Proposal {index} is not approved by {principal}")
        self.principal = principal


class InsufficientApprovals(QuorumError):
    def __init__(self, required: int, current: int) -> None:
        super().__init__(f"Not enough approvals: {current} of {required} required")
        self.required = required
        self.current = current


class ActionFailed(QuorumError):
    def __init__(self, index: int, reason: Optional[str] = None) -> None:
        message = f"Action for proposal {index} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.index = index
        self.reason = reason


class InvalidArgument(QuorumError):
    pass
