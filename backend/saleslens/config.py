# backend/saleslens/config.py
from __future__ import annotations
import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///saleslens.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Weekly units sold -> product status, checked top-down (business policy)
    SALES_STATUS_THRESHOLDS = (
        (20, "Fast Mover"),
        (10, "Stable"),
        (5, "Running Low"),
        (2, "Slow Mover"),
    )
    SALES_STATUS_FLOOR = "Very Slow"

    # Week-over-week trend labelling
    TREND_STEADY_PCT = _env_float("TREND_STEADY_PCT", 5.0)
    TREND_LIMIT = _env_int("TREND_LIMIT", 5)

    # Debt-cleared heuristic: share of a credit customer's weekly non-credit
    # spend attributed to settling old credit. Sales are joined to customers
    # on DEBT_CORRELATION_KEY (sale field) = DEBT_CUSTOMER_KEY (customer field).
    DEBT_ATTRIBUTION_RATIO = os.environ.get("DEBT_ATTRIBUTION_RATIO", "0.3")
    DEBT_CORRELATION_KEY = os.environ.get("DEBT_CORRELATION_KEY", "customer_phone")
    DEBT_CUSTOMER_KEY = os.environ.get("DEBT_CUSTOMER_KEY", "phone_number")

    # Legacy purchase rows without a quantity count as this many units.
    LEGACY_QUANTITY_DEFAULT = _env_int("LEGACY_QUANTITY_DEFAULT", 1)

    # Ledger reads retry transient store errors with exponential backoff
    LEDGER_READ_ATTEMPTS = _env_int("LEDGER_READ_ATTEMPTS", 3)
    LEDGER_READ_BACKOFF_SECONDS = _env_float("LEDGER_READ_BACKOFF_SECONDS", 0.1)

    REVERSAL_WINDOW_DAYS = _env_int("REVERSAL_WINDOW_DAYS", 30)
    REVERSAL_CANDIDATE_LIMIT = _env_int("REVERSAL_CANDIDATE_LIMIT", 50)
    REPORT_DETAIL_LIMIT = _env_int("REPORT_DETAIL_LIMIT", 50)
