import os
from pathlib import Path

# Base directory for wallet data; QUORUM_HOME relocates everything below it
BASE_DIR = Path(os.environ.get("QUORUM_HOME", Path.cwd() / ".quorum")).resolve()

# Storage locations
STATE_FILE = BASE_DIR / "state.yaml"
LOCK_DIR = BASE_DIR / "locks"
DB_FILE = BASE_DIR / "quorum.db"

# Audit
AUDIT_LOG_FILE = BASE_DIR / "audit.log"

# Executors
EXECUTOR_ENV = "QUORUM_EXECUTOR"
DEFAULT_EXECUTOR = os.environ.get(EXECUTOR_ENV, "outbox")
OUTBOX_FILE = BASE_DIR / "outbox.jsonl"
COMMAND_TIMEOUT_ENV = "QUORUM_COMMAND_TIMEOUT"

# API auth: "principal:token" pairs
API_TOKEN_ENV = "QUORUM_API_TOKENS"
API_TOKEN_FILE = BASE_DIR / "api_tokens.txt"
