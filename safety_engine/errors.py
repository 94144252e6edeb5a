"""
Errors raised at the safety engine boundary.
"""

from __future__ import annotations


class InvalidInput(ValueError):
    """
    Raised when a caller hands the engine missing or malformed arguments
    (no product, inactive restrictions, unknown enum values).
    """
