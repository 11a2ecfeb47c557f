"""Domain types shared by the simulator, the analysis service and storage.

All models accept both the snake_case attribute names used in Python and
the camelCase keys used on the JSON wire (``riskScore``, ``deviceID``...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    TRANSFER = "TRANSFER"
    PAYMENT = "PAYMENT"
    CASH_OUT = "CASH_OUT"
    DEBIT = "DEBIT"
    PAYMENT_GATEWAY = "PAYMENT_GATEWAY"


class FraudStatus(str, Enum):
    SAFE = "SAFE"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    PENDING = "PENDING"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        protected_namespaces=(),
    )


class TransactionData(CamelModel):
    """A simulated payment together with the user's reference profile."""

    # Current transaction
    amount: float = Field(ge=0)
    currency: str = "INR"
    merchant: str = Field(min_length=1)
    location: str = ""
    device_id: str = Field("", alias="deviceID")
    transaction_type: TransactionType = TransactionType.PAYMENT
    ip_address: str = ""
    distance_from_home: float = Field(0.0, ge=0)

    # Reference profile (normal behaviour)
    avg_transaction_amount: float = Field(0.0, ge=0)
    home_location: str = ""
    registered_device_id: str = Field("", alias="registeredDeviceID")
    user_risk_score: float = Field(0.0, ge=0, le=100)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


class ModelInsights(CamelModel):
    """Per-algorithm sub-scores, each on a 0-100 scale."""

    isolation_forest_score: float = 0.0
    xg_boost_probability: float = 0.0
    lstm_sequence_score: float = 0.0

    @field_validator("isolation_forest_score", "xg_boost_probability", "lstm_sequence_score")
    @classmethod
    def _within_percent(cls, value: float) -> float:
        return _clamp(value, 0.0, 100.0)


class AnalysisResult(CamelModel):
    risk_score: float
    status: FraudStatus
    detected_anomalies: List[str] = Field(default_factory=list)
    recommendation: str = ""
    reasoning: str = ""
    ml_confidence: float = 0.0
    model_used: str = ""
    model_insights: ModelInsights = Field(default_factory=ModelInsights)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("risk_score")
    @classmethod
    def _clamp_risk(cls, value: float) -> float:
        return _clamp(value, 0.0, 100.0)

    @field_validator("ml_confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        # Percentages sometimes come back instead of a 0-1 fraction.
        if 1.0 < value <= 100.0:
            value = value / 100.0
        return _clamp(value, 0.0, 1.0)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProcessedTransaction(TransactionData):
    """A transaction record stamped with an id, a timestamp and its analysis."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: str = Field(default_factory=_utc_now)
    analysis: Optional[AnalysisResult] = None

    @property
    def status(self) -> FraudStatus:
        if self.analysis is None:
            return FraudStatus.PENDING
        return self.analysis.status

    @property
    def risk_score(self) -> float:
        return self.analysis.risk_score if self.analysis is not None else 0.0
