import hmac
import os
from typing import List, Optional, Tuple

from . import config
from .utils import read_pairs


def _env_pairs() -> List[Tuple[str, str]]:
    raw = os.environ.get(config.API_TOKEN_ENV, "")
    pairs: List[Tuple[str, str]] = []
    for item in raw.split(","):
        principal, sep, token = item.strip().partition(":")
        if sep and principal.strip() and token.strip():
            pairs.append((principal.strip(), token.strip()))
    return pairs


def load_api_tokens() -> List[Tuple[str, str]]:
    """Return ``(principal, token)`` pairs from the environment and the token file."""
    return _env_pairs() + read_pairs(config.API_TOKEN_FILE)


def resolve_principal(token: Optional[str]) -> Optional[str]:
    """Map an API token to the principal it authenticates, or None."""
    if not token:
        return None
    found = None
    for principal, expected in load_api_tokens():
        # Walk every entry so timing does not depend on where the match sits.
        if hmac.compare_digest(token.encode(), expected.encode()) and found is None:
            found = principal
    return found
