"""Common infrastructure utilities.

This module provides shared utilities for infrastructure components:
- Result: success/failure value for steps that must not raise
"""

from __future__ import annotations

from .result import Result

__all__ = [
    "Result",
]
