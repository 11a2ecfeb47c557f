"""Initialize the safepay package.

This file marks the `safepay` directory as a Python package so that
modules such as `safepay.services` and `safepay.utils` can be imported
using absolute imports within the project (e.g., `from safepay.utils import DEFAULT_TRANSACTION`).
"""

__version__ = "1.0.0"
