"""Sample of the PaySim-style dataset the simulated models are described against.

Source reference: PaySim Synthetic Dataset / Kaggle Financial Fraud. The
rows are shown on the "How it Detects" page; nothing is trained on them.
"""

from __future__ import annotations

from typing import Dict, List

import pandas as pd


DATASET_URL = "https://www.kaggle.com/datasets/amanalisiddiqui/fraud-detection-dataset"
DATASET_NAME = "Financial Transactions Fraud Detection Dataset"

COLUMNS = [
    "step",
    "type",
    "amount",
    "nameOrig",
    "oldbalanceOrg",
    "newbalanceOrig",
    "nameDest",
    "oldbalanceDest",
    "newbalanceDest",
    "isFraud",
    "isFlaggedFraud",
]

RAW_TRANSACTION_DATASET: List[Dict] = [
    {"step": 1, "type": "PAYMENT", "amount": 9839.64, "nameOrig": "C1231006815", "oldbalanceOrg": 170136.0,
     "newbalanceOrig": 160296.36, "nameDest": "M1979787155", "oldbalanceDest": 0.0, "newbalanceDest": 0.0,
     "isFraud": 0, "isFlaggedFraud": 0},
    {"step": 1, "type": "PAYMENT", "amount": 1864.28, "nameOrig": "C1666544295", "oldbalanceOrg": 21249.0,
     "newbalanceOrig": 19384.72, "nameDest": "M2044282225", "oldbalanceDest": 0.0, "newbalanceDest": 0.0,
     "isFraud": 0, "isFlaggedFraud": 0},
    {"step": 1, "type": "TRANSFER", "amount": 181.0, "nameOrig": "C1305486145", "oldbalanceOrg": 181.0,
     "newbalanceOrig": 0.0, "nameDest": "C553264065", "oldbalanceDest": 0.0, "newbalanceDest": 0.0,
     "isFraud": 1, "isFlaggedFraud": 0},
    {"step": 1, "type": "CASH_OUT", "amount": 181.0, "nameOrig": "C840083671", "oldbalanceOrg": 181.0,
     "newbalanceOrig": 0.0, "nameDest": "C38997010", "oldbalanceDest": 21182.0, "newbalanceDest": 0.0,
     "isFraud": 1, "isFlaggedFraud": 0},
]


def load_sample() -> pd.DataFrame:
    """Return the bundled sample rows as a DataFrame with the dataset's column order."""
    return pd.DataFrame(RAW_TRANSACTION_DATASET, columns=COLUMNS)


def summarize(df: pd.DataFrame) -> Dict[str, int]:
    """Row count and label balance of a dataset sample."""
    fraud = int(df["isFraud"].sum())
    return {"rows": len(df), "fraud": fraud, "legitimate": len(df) - fraud}
