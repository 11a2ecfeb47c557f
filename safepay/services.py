"""Fraud analysis backed by the Gemini text completion service.

The service is asked to act as an ensemble of three fraud models
(Isolation Forest, XGBoost and LSTM) and to return a structured JSON
assessment. Nothing is scored locally: this module only builds the
prompt, enforces the response schema and falls back to a static
"manual review" verdict whenever the service cannot be used.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from safepay.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from safepay.models import AnalysisResult, FraudStatus, ModelInsights, TransactionData


logger = logging.getLogger(__name__)

ENSEMBLE_MODEL_NAME = "SafePay-Ensemble-v1 (IF+XGB+LSTM)"
FALLBACK_MODEL_NAME = "Fallback"
DEFAULT_REASONING = "Analysis complete."


class AnalysisError(Exception):
    """Raised when the service reply is empty or does not match the schema."""


RESPONSE_SCHEMA = {
    "type": types.Type.OBJECT,
    "properties": {
        "riskScore": {
            "type": types.Type.NUMBER,
            "description": "A score from 0 to 100 indicating fraud probability.",
        },
        "status": {
            "type": types.Type.STRING,
            "enum": ["SAFE", "WARNING", "CRITICAL"],
            "description": "Categorical status of the transaction.",
        },
        "detectedAnomalies": {
            "type": types.Type.ARRAY,
            "items": {"type": types.Type.STRING},
            "description": "List of specific suspicious patterns identified.",
        },
        "recommendation": {
            "type": types.Type.STRING,
            "description": "Actionable advice (e.g., 'Approve', 'Flag for Review', 'Block').",
        },
        "reasoning": {
            "type": types.Type.STRING,
            "description": (
                "A clear, detailed explanation of WHY the fraud was detected "
                "or why it is safe. Explain the logic."
            ),
        },
        "mlConfidence": {
            "type": types.Type.NUMBER,
            "description": "Confidence of the model in its prediction (0.0 to 1.0).",
        },
        "modelInsights": {
            "type": types.Type.OBJECT,
            "properties": {
                "isolationForestScore": {
                    "type": types.Type.NUMBER,
                    "description": "Anomaly score (0-100) based on amount/location deviation.",
                },
                "xgBoostProbability": {
                    "type": types.Type.NUMBER,
                    "description": "Classification probability (0-100) based on known fraud patterns.",
                },
                "lstmSequenceScore": {
                    "type": types.Type.NUMBER,
                    "description": "Sequence irregularity score (0-100) based on user behavior change.",
                },
            },
            "required": ["isolationForestScore", "xgBoostProbability", "lstmSequenceScore"],
        },
    },
    "required": [
        "riskScore",
        "status",
        "detectedAnomalies",
        "recommendation",
        "reasoning",
        "mlConfidence",
        "modelInsights",
    ],
}


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def build_prompt(transaction: TransactionData) -> str:
    """Render the ensemble-simulation prompt for one transaction."""
    t = transaction
    return f"""
Act as an Ensemble Fraud Detection System specialized in Indian financial systems (UPI, RuPay, INR context).
You are aggregating the results of three specific internal models:
1. Isolation Forest (Unsupervised Anomaly Detection)
2. XGBoost (Supervised Classification)
3. LSTM (Sequential Deep Learning)

Analyze the following transaction vector against the User's Reference Profile:

USER REFERENCE PROFILE (NORMAL BEHAVIOR):
- Average Amount: {_num(t.avg_transaction_amount)} {t.currency}
- Home Location: {t.home_location}
- Registered Device: {t.registered_device_id}
- Base User Risk Score: {_num(t.user_risk_score)}

CURRENT TRANSACTION DETAILS (TO ANALYZE):
- Amount: {_num(t.amount)} {t.currency}
- Merchant: {t.merchant}
- Current Location: {t.location}
- Current Device: {t.device_id}
- Type: {t.transaction_type.value}
- Distance from Home: {_num(t.distance_from_home)} km

SIMULATION LOGIC:
- **Isolation Forest**: Rate high (80-100) if Amount > 3x Average OR Distance is very high. Rate low (0-20) if normal.
- **XGBoost**: Rate high if Device ID mismatches OR Location mismatches (High correlation with fraud features).
- **LSTM**: Rate high if the transaction type implies a sudden "cash out" or break in sequence.

Calculate the final weighted risk score based on these three inputs.
Provide a detailed reasoning paragraph.
Return JSON.
""".strip()


def parse_analysis(text: Optional[str]) -> AnalysisResult:
    """Validate a raw JSON reply and fill in the optional parts.

    Raises
    ------
    AnalysisError
        If the reply is empty, not JSON, or fails schema validation.
    """
    if not text or not text.strip():
        raise AnalysisError("No response from AI")

    try:
        payload = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"Malformed JSON from AI: {exc}") from exc
    if not isinstance(payload, dict):
        raise AnalysisError("Expected a JSON object from AI")

    # PENDING is reserved for records without an analysis.
    status = str(payload.get("status", "")).strip().upper()
    if status not in RESPONSE_SCHEMA["properties"]["status"]["enum"]:
        raise AnalysisError(f"Unexpected status from AI: {payload.get('status')!r}")

    if not payload.get("reasoning"):
        payload["reasoning"] = DEFAULT_REASONING
    if not payload.get("modelInsights"):
        payload["modelInsights"] = ModelInsights().model_dump(by_alias=True)
    payload["modelUsed"] = ENSEMBLE_MODEL_NAME

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        raise AnalysisError(f"AI response failed validation: {exc}") from exc


def fallback_result() -> AnalysisResult:
    """Static verdict used whenever the AI service cannot give an answer."""
    return AnalysisResult(
        risk_score=0,
        status=FraudStatus.WARNING,
        detected_anomalies=["System Error - Manual Review Required"],
        recommendation="Hold Transaction",
        reasoning=(
            "The AI service was unavailable to provide a detailed reason "
            "or returned malformed data."
        ),
        ml_confidence=0,
        model_used=FALLBACK_MODEL_NAME,
        model_insights=ModelInsights(),
    )


class FraudAnalyzer:
    """Send transactions to Gemini and turn the replies into `AnalysisResult`s.

    Parameters
    ----------
    client : optional
        A `google.genai.Client` (or anything exposing
        `models.generate_content`). Built from `api_key` when omitted.
    api_key : str, optional
        Gemini API key. Without a key or client every call falls back.
    model : str
        Gemini model name.
    temperature : float
        Sampling temperature; kept low so verdicts stay stable.
    max_attempts : int
        Total attempts per transaction, including the first.
    wait : optional
        A tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        client: Any = None,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        wait: Any = None,
    ) -> None:
        if client is None and api_key:
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_attempts = max(1, int(max_attempts))
        self.wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=8)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "FraudAnalyzer":
        return cls(
            api_key=config.get("GEMINI_API_KEY"),
            model=config.get("SAFEPAY_MODEL", DEFAULT_MODEL),
            temperature=config.get("SAFEPAY_TEMPERATURE", DEFAULT_TEMPERATURE),
            max_attempts=config.get("SAFEPAY_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _generate(self, transaction: TransactionData) -> AnalysisResult:
        response = self.client.models.generate_content(
            model=self.model,
            contents=build_prompt(transaction),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
                temperature=self.temperature,
            ),
        )
        return parse_analysis(response.text)

    def analyze(self, transaction: TransactionData) -> AnalysisResult:
        """Return the service's assessment, or the fallback verdict on any error."""
        if not self.enabled:
            logger.warning("Gemini API key is not configured; returning fallback analysis.")
            return fallback_result()

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_not_exception_type(AnalysisError),
            wait=self.wait,
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            result = retrying(self._generate, transaction)
        except Exception:
            logger.exception("Fraud analysis error for merchant %r", transaction.merchant)
            return fallback_result()

        logger.info(
            "Analysis complete: status=%s risk=%.0f merchant=%r",
            result.status.value,
            result.risk_score,
            transaction.merchant,
        )
        return result
