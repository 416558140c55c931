# src/mnhost/config/const.py
from __future__ import annotations

# Hard defaults; runtime overrides live in Settings (env / mnhost.yaml).
APP_NAME: str = "mnhost"
DEFAULT_BASE_DIRNAME: str = ".mnhost"
CONTAINER_HOME: str = "/home/container"

SETTINGS_FILENAME: str = "mnhost.yaml"
DB_FILENAME: str = "mnhost.sqlite"

DEFAULT_API_HOST: str = "0.0.0.0"
DEFAULT_API_PORT: int = 8080

# Readiness poll after a node is created.
READINESS_TIMEOUT_S: float = 15.0
READINESS_INTERVAL_S: float = 1.0
READINESS_MIN_ATTEMPT_S: float = 0.1

RPC_TIMEOUT_S: float = 30.0
RPC_REQUEST_ID: str = "mnhost"

SESSION_TTL_S: int = 5 * 60 * 60

# Random bytes rendered as hex for generated RPC credentials.
RPC_USER_BYTES: int = 12
RPC_PASSWORD_BYTES: int = 24

# Daemon-managed storage replaced by snapshots and wiped by resync.
BLOCKS_DIRNAME: str = "blocks"
CHAINSTATE_DIRNAME: str = "chainstate"

MAX_PORT: int = 65535
