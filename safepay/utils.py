"""Utilities shared across the SafePay dashboard.

This module centralizes the simulator presets and the display helpers
used by both the Flask views and the PDF reports. Keeping these values in
one place means the form, the charts and the exported documents all format
amounts and times the same way.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Union
from zoneinfo import ZoneInfo

from safepay.config import DISPLAY_TIMEZONE
from safepay.models import FraudStatus, TransactionType


# Normal behaviour for the demo user; the simulator starts from here.
DEFAULT_TRANSACTION: Dict[str, Union[str, float]] = {
    # Current transaction
    "amount": 2500.00,
    "currency": "INR",
    "merchant": "JioMart Mumbai",
    "location": "Mumbai, Maharashtra",
    "device_id": "DEV_IN_8823_ANDROID",
    "transaction_type": TransactionType.PAYMENT.value,
    "ip_address": "115.110.12.5",
    "distance_from_home": 5,
    # Reference profile
    "avg_transaction_amount": 2000.00,
    "home_location": "Mumbai, Maharashtra",
    "registered_device_id": "DEV_IN_8823_ANDROID",
    "user_risk_score": 12,
}

# "Inject Fraud Pattern": an anomalous transaction against the same normal profile.
FRAUD_PATTERN: Dict[str, Union[str, float]] = {
    **DEFAULT_TRANSACTION,
    "amount": 150000.00,
    "currency": "INR",
    "merchant": "Unknown_Offshore_Entity",
    "location": "Moscow, Russia",
    "device_id": "UNREGISTERED_DEVICE_X",
    "transaction_type": TransactionType.CASH_OUT.value,
    "ip_address": "45.112.99.11",
    "distance_from_home": 5000,
    "user_risk_score": 65,
}

PRESETS = {"reset": DEFAULT_TRANSACTION, "fraud": FRAUD_PATTERN}

# Scores above this are drawn in red on the history table.
HIGH_RISK_THRESHOLD = 70


def to_display_time(timestamp: str) -> datetime:
    """Parse an ISO timestamp and convert it to the display timezone (IST).

    Naive timestamps are treated as UTC.
    """
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(ZoneInfo(DISPLAY_TIMEZONE))


def format_time(timestamp: str, seconds: bool = False) -> str:
    """Format a timestamp as a 24h IST clock time, e.g. ``14:05`` or ``14:05:09``."""
    fmt = "%H:%M:%S" if seconds else "%H:%M"
    return to_display_time(timestamp).strftime(fmt)


def group_indian(number: int) -> str:
    """Group digits the Indian way: 1,50,000 rather than 150,000."""
    digits = str(abs(int(number)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        digits = ",".join(pairs + [tail])
    return ("-" if number < 0 else "") + digits


def format_inr(amount: float, symbol: str = "₹") -> str:
    """Format an amount with Indian digit grouping, keeping up to two decimals."""
    rounded = round(float(amount), 2)
    whole = int(rounded)
    fraction = abs(rounded - whole)
    text = group_indian(whole)
    if rounded < 0 and whole == 0:
        text = "-" + text
    if fraction:
        text += f"{fraction:.2f}"[1:].rstrip("0")
    return f"{symbol}{text}"


def status_class(status: Union[FraudStatus, str, None]) -> str:
    """CSS modifier for a status badge."""
    if status is None:
        return "pending"
    value = status.value if isinstance(status, FraudStatus) else str(status)
    return value.lower()


def risk_class(score: float) -> str:
    return "high" if score > HIGH_RISK_THRESHOLD else "low"
