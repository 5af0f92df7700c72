import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = str(os.getenv(name, "1" if default else "0")).strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def _str_env(name: str, default: str) -> str:
    value = str(os.getenv(name, default)).strip()
    return value or default


_DEFAULT_DB_PATH = Path(__file__).resolve().parent / "data" / "sadaya.db"

DATABASE_URL = _str_env("SADAYA_DB_URL", f"sqlite:///{_DEFAULT_DB_PATH.as_posix()}")
API_BIND_HOST = _str_env("SADAYA_API_HOST", "127.0.0.1")
API_PORT = _int_env("SADAYA_API_PORT", 8010)
PORTAL_PORT = _int_env("SADAYA_PORTAL_PORT", 5010)
API_BASE_URL = _str_env("SADAYA_API_BASE_URL", f"http://127.0.0.1:{API_PORT}")

SESSION_SECRET = _str_env("SADAYA_SESSION_SECRET", "sadaya-dev-session-secret")
SESSION_TTL_SECONDS = _int_env("SADAYA_SESSION_TTL_SECONDS", 43200)
SESSION_HEADER = "X-Session-Token"

SEED_DEMO_DATA = _bool_env("SADAYA_SEED_DEMO_DATA", True)
DEFAULT_PASSWORD = _str_env("SADAYA_DEFAULT_PASSWORD", "sanctuary")

LOG_LEVEL = _str_env("SADAYA_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("SADAYA_LOG_FILE") or None

# Number of occurrences generated for a new recurring class, per cycle
RECURRENCE_DEFAULTS = {
    "Daily": _int_env("SADAYA_RECUR_DAILY", 7),
    "Weekly": _int_env("SADAYA_RECUR_WEEKLY", 8),
    "Bi-Weekly": _int_env("SADAYA_RECUR_BIWEEKLY", 6),
    "Monthly": _int_env("SADAYA_RECUR_MONTHLY", 6),
}
RECURRENCE_MAX_OCCURRENCES = _int_env("SADAYA_RECUR_MAX", 52)

# bcrypt cost factor for stored passwords (tests lower this to the minimum of 4)
BCRYPT_ROUNDS = max(4, min(_int_env("SADAYA_BCRYPT_ROUNDS", 12), 31))

PORTAL_BIND_HOST = _str_env("SADAYA_PORTAL_HOST", "127.0.0.1")
PORTAL_SECRET_KEY = _str_env("SADAYA_PORTAL_SECRET", "sadaya-portal-dev-secret")
API_TIMEOUT_SECONDS = _int_env("SADAYA_API_TIMEOUT_SECONDS", 10)
