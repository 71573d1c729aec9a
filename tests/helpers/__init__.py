"""Helper package for shared test inputs.

Re-exports the canonical cases so tests can import them as
``from tests.helpers import UK_INVESTMENT_CASE``.
"""
from .shared import (
    DEFAULT_CALCULATION_CASES,
    UAE_INVESTMENT_CASE,
    UK_INVESTMENT_CASE,
    UK_OWNER_CASE,
)

__all__ = [
    "DEFAULT_CALCULATION_CASES",
    "UAE_INVESTMENT_CASE",
    "UK_INVESTMENT_CASE",
    "UK_OWNER_CASE",
]
