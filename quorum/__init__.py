"""
Quorum: M-of-N multi-party authorization wallet.

A fixed committee of principals submits proposed actions, approves or revokes
them, and executes an action exactly once after enough principals approve it.
"""

from .engine import AuthorizationEngine  # noqa: F401
from .errors import QuorumError  # noqa: F401
from .registry import PrincipalRegistry  # noqa: F401

__all__ = ["AuthorizationEngine", "PrincipalRegistry", "QuorumError", "config"]
