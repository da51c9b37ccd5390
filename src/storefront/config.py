"""Ledger settings read from the environment.

Protean's own configuration (providers, event store, processing mode) lives in
``pyproject.toml`` under ``[tool.protean]``. The values here are business and
runtime knobs that the services read when they are constructed.
"""

import os


def _float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def free_shipping_threshold() -> float:
    return _float("STOREFRONT_FREE_SHIPPING_THRESHOLD", 1000.0)


def flat_shipping_fee() -> float:
    return _float("STOREFRONT_FLAT_SHIPPING_FEE", 50.0)


def tax_rate() -> float:
    return _float("STOREFRONT_TAX_RATE", 0.18)


def currency() -> str:
    return os.environ.get("STOREFRONT_CURRENCY", "INR")


def lock_timeout() -> float:
    """Seconds a caller waits for a stock or order lock before giving up."""
    return _float("STOREFRONT_LOCK_TIMEOUT", 2.0)


def reservation_ttl_minutes() -> int:
    """Age after which an unconfirmed reservation is considered abandoned."""
    return _int("STOREFRONT_RESERVATION_TTL_MINUTES", 15)


# --- Logging ---

_LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def environment() -> str:
    return (os.environ.get("ENV") or os.environ.get("PROTEAN_ENV") or "development").lower()


def log_level() -> str:
    """STOREFRONT_LOG_LEVEL, else a default for the current environment."""
    default = _LEVEL_BY_ENV.get(environment(), "INFO")
    return os.environ.get("STOREFRONT_LOG_LEVEL", default).upper()


def log_format() -> str:
    """``json`` or ``console``; deployed environments default to JSON."""
    default = "json" if environment() in ("production", "staging") else "console"
    return os.environ.get("STOREFRONT_LOG_FORMAT", default).lower()


def log_dir() -> str | None:
    """Directory for the rotating log file. An empty value disables file logging."""
    return os.environ.get("STOREFRONT_LOG_DIR", "logs") or None


def log_file_max_bytes() -> int:
    return _int("STOREFRONT_LOG_FILE_MAX_BYTES", 10 * 1024 * 1024)
