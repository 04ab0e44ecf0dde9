import json
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple, Union

import yaml


def utc_now() -> str:
    """Return an ISO 8601 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def load_yaml_or_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text()
    if not text.strip():
        return {}
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text) or {}


def dump_yaml(data: Dict[str, Any], path: Path) -> None:
    """Write ``data`` as YAML, replacing ``path`` atomically."""
    ensure_dir(path.parent)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(yaml.safe_dump(data, sort_keys=False))
    os.replace(tmp, path)


def parse_payload(raw: str) -> bytes:
    """Decode a hex payload, with or without a ``0x`` prefix."""
    text = (raw or "").strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"Payload must be hex encoded: {raw!r}") from exc


def read_pairs(path: Path) -> List[Tuple[str, str]]:
    """Read ``left:right`` lines, skipping blanks and ``#`` comments."""
    if not path.exists():
        return []
    pairs: List[Tuple[str, str]] = []
    with path.open() as f:
        for line in f:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            left, sep, right = stripped.partition(":")
            if sep and left.strip() and right.strip():
                pairs.append((left.strip(), right.strip()))
    return pairs


@contextmanager
def file_lock(lock_path: Path) -> Iterator[None]:
    """Advisory lock using fcntl."""
    ensure_dir(lock_path.parent)
    import fcntl

    with lock_path.open("w") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def normalize_amount(amount: Decimal) -> Union[int, Decimal]:
    """Whole amounts become plain integers, fractional ones stay Decimal."""
    if amount == amount.to_integral_value():
        return int(amount)
    return amount
