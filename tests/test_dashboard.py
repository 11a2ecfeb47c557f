import pytest

from safepay.dashboard import (
    RISK_SERIES_POINTS,
    compute_stats,
    risk_series,
    type_distribution,
)
from safepay.models import AnalysisResult, ProcessedTransaction
from safepay.utils import DEFAULT_TRANSACTION, FRAUD_PATTERN


def _processed(values, status, risk, timestamp="2024-01-01T00:00:00+00:00"):
    processed = ProcessedTransaction(**values, timestamp=timestamp)
    processed.analysis = AnalysisResult(risk_score=risk, status=status)
    return processed


@pytest.fixture
def history():
    # newest first, as storage returns it
    return [
        _processed(FRAUD_PATTERN, "CRITICAL", 90, "2024-01-01T02:00:00+00:00"),
        _processed(DEFAULT_TRANSACTION, "SAFE", 10, "2024-01-01T01:00:00+00:00"),
        _processed(dict(DEFAULT_TRANSACTION, amount=8000), "WARNING", 50, "2024-01-01T00:00:00+00:00"),
    ]


def test_compute_stats(history):
    stats = compute_stats(history)
    assert stats.total == 3
    assert stats.critical == 1
    assert stats.prevented_loss == 150000
    assert stats.avg_risk == pytest.approx(50)
    assert stats.threat_rate == "33.3%"
    assert stats.risk_trend == "Low"


def test_compute_stats_empty():
    stats = compute_stats([])
    assert (stats.total, stats.critical, stats.prevented_loss, stats.avg_risk) == (0, 0, 0.0, 0.0)
    assert stats.threat_rate == "0%"


def test_high_average_risk_trend(history):
    stats = compute_stats(history[:1])
    assert stats.high_risk
    assert stats.risk_trend == "High"


def test_risk_series_is_chronological(history):
    series = risk_series(history)
    assert list(series["time"]) == ["05:30", "06:30", "07:30"]
    assert list(series["risk"]) == [50, 10, 90]
    assert list(series["amount"]) == [80, 25, 1500]


def test_risk_series_keeps_latest_points():
    many = [
        _processed(DEFAULT_TRANSACTION, "SAFE", i, f"2024-01-01T{23 - i:02d}:00:00+00:00")
        for i in range(15)
    ]
    series = risk_series(many)
    assert len(series) == RISK_SERIES_POINTS
    assert series["risk"].iloc[-1] == 0


def test_type_distribution_lists_every_type(history):
    dist = type_distribution(history)
    counts = dict(zip(dist["name"], dist["value"]))
    assert counts == {"Transfer": 0, "Payment": 2, "Cash Out": 1, "Debit": 0, "Gateway": 0}
    assert type_distribution([])["value"].sum() == 0
