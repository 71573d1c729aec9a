"""Global property calculator: purchase cost, yield and running cost engine."""

from .models.valuation_model import (
    BuyerResidency,
    Country,
    HomeCount,
    InvestmentResult,
    Language,
    OwnerOccupiedResult,
    Purpose,
    SensitivityCell,
    ValuationInput,
)
from .utils.calculations import compute

__all__ = [
    "BuyerResidency",
    "Country",
    "HomeCount",
    "InvestmentResult",
    "Language",
    "OwnerOccupiedResult",
    "Purpose",
    "SensitivityCell",
    "ValuationInput",
    "compute",
]
