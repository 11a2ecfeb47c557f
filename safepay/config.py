"""Runtime configuration for the SafePay dashboard.

Values are read from the process environment after loading an optional
`.env` file from the project root. Keeping every tunable here means the
Flask app, the analysis service and the tests agree on names and defaults.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_ATTEMPTS = 2

# Display timezone for dashboards and logs.
DISPLAY_TIMEZONE = "Asia/Kolkata"


def get_default_db_path() -> Path:
    """Return the default SQLite path, `data/transactions.db` under the project root."""
    return PROJECT_ROOT / "data" / "transactions.db"


def load_config() -> Dict[str, Any]:
    """Collect application settings from the environment.

    Returns
    -------
    Dict[str, Any]
        A mapping suitable for `Flask.config.from_mapping`.
    """
    load_dotenv(PROJECT_ROOT / ".env")

    return {
        "SECRET_KEY": os.getenv("SECRET_KEY") or secrets.token_hex(16),
        # The browser build used API_KEY; accept it as a fallback.
        "GEMINI_API_KEY": os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        "SAFEPAY_MODEL": os.getenv("SAFEPAY_MODEL", DEFAULT_MODEL),
        "SAFEPAY_TEMPERATURE": float(os.getenv("SAFEPAY_TEMPERATURE", DEFAULT_TEMPERATURE)),
        "SAFEPAY_MAX_ATTEMPTS": int(os.getenv("SAFEPAY_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
        "SAFEPAY_DATABASE": os.getenv("SAFEPAY_DATABASE", str(get_default_db_path())),
    }
