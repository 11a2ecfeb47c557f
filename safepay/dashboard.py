"""Session statistics and chart series for the dashboard page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from safepay.models import FraudStatus, ProcessedTransaction, TransactionType
from safepay.utils import format_time


RISK_SERIES_POINTS = 10

TYPE_LABELS = {
    TransactionType.TRANSFER: "Transfer",
    TransactionType.PAYMENT: "Payment",
    TransactionType.CASH_OUT: "Cash Out",
    TransactionType.DEBIT: "Debit",
    TransactionType.PAYMENT_GATEWAY: "Gateway",
}


@dataclass
class DashboardStats:
    total: int
    critical: int
    prevented_loss: float
    avg_risk: float

    @property
    def threat_rate(self) -> str:
        if self.total == 0:
            return "0%"
        return f"{self.critical / self.total * 100:.1f}%"

    @property
    def risk_trend(self) -> str:
        return "High" if self.high_risk else "Low"

    @property
    def high_risk(self) -> bool:
        return self.avg_risk > 50


def to_frame(transactions: Sequence[ProcessedTransaction]) -> pd.DataFrame:
    """Flatten processed transactions into one row each, keeping input order."""
    rows = [
        {
            "timestamp": t.timestamp,
            "amount": t.amount,
            "transaction_type": t.transaction_type.value,
            "status": t.status.value,
            "risk_score": t.risk_score,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=["timestamp", "amount", "transaction_type", "status", "risk_score"])


def compute_stats(transactions: Sequence[ProcessedTransaction]) -> DashboardStats:
    df = to_frame(transactions)
    if df.empty:
        return DashboardStats(total=0, critical=0, prevented_loss=0.0, avg_risk=0.0)

    critical = df[df["status"] == FraudStatus.CRITICAL.value]
    return DashboardStats(
        total=len(df),
        critical=len(critical),
        prevented_loss=float(critical["amount"].sum()),
        avg_risk=float(df["risk_score"].mean()),
    )


def risk_series(transactions: Sequence[ProcessedTransaction]) -> pd.DataFrame:
    """Latest transactions in chronological order for the risk volatility chart.

    `transactions` is expected newest first, as returned by storage. The
    amount column is divided by 100 so it can share an axis with risk.
    """
    df = to_frame(list(transactions)[:RISK_SERIES_POINTS]).iloc[::-1].reset_index(drop=True)
    return pd.DataFrame(
        {
            "time": [format_time(ts) for ts in df["timestamp"]],
            "risk": df["risk_score"].astype(float),
            "amount": df["amount"].astype(float) / 100,
        }
    )


def type_distribution(transactions: Sequence[ProcessedTransaction]) -> pd.DataFrame:
    """Count of transactions per type, including types with no transactions."""
    counts = to_frame(transactions)["transaction_type"].value_counts()
    return pd.DataFrame(
        {
            "name": list(TYPE_LABELS.values()),
            "value": [int(counts.get(t.value, 0)) for t in TYPE_LABELS],
        }
    )
