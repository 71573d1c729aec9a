# src/global_property_mcp/utils/rate_tables.py
"""Tax / fee rate tables.

Rates live in ``config/rate_tables.yaml`` so they can be updated without a
code change. ``GPC_RATE_TABLES`` points the loader at another file. When the
file is missing or invalid the built-in defaults below are used.
"""

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.valuation_model import Country

logger = logging.getLogger(__name__)

RATE_TABLES_ENV = "GPC_RATE_TABLES"
DEFAULT_RATE_TABLES_PATH = os.path.join(
    os.path.dirname(__file__), "../config/rate_tables.yaml"
)


class TaxBand(BaseModel):
    """Marginal band: ``rate`` applies to the slice up to ``up_to`` (None = no cap)"""

    model_config = ConfigDict(frozen=True)

    up_to: Optional[float] = None
    rate: float


class FirstTimeBuyerRelief(BaseModel):
    """Replacement band schedule for first homes priced at or below ``max_price``"""

    model_config = ConfigDict(frozen=True)

    max_price: float
    bands: Tuple[TaxBand, ...]


class PurchaseTaxRates(BaseModel):
    """Banded tax when ``bands`` is set, otherwise flat ``rate`` of price."""

    model_config = ConfigDict(frozen=True)

    rate: float = 0.0
    bands: Tuple[TaxBand, ...] = ()
    additional_home_surcharge: float = 0.0
    non_resident_surcharge: float = 0.0
    first_time_buyer: Optional[FirstTimeBuyerRelief] = None


class FeeTier(BaseModel):
    """Flat fee for prices up to ``up_to`` (None = no cap)"""

    model_config = ConfigDict(frozen=True)

    up_to: Optional[float] = None
    fee: float


class FeeSchedule(BaseModel):
    """Generic estimator: tier fee + fixed fees + bounded proportional part.

    An empty schedule estimates zero.
    """

    model_config = ConfigDict(frozen=True)

    tiers: Tuple[FeeTier, ...] = ()
    fixed_fees: Dict[str, float] = Field(default_factory=dict)
    rate: float = 0.0
    minimum: float = 0.0
    maximum: Optional[float] = None


class CountryRates(BaseModel):
    """All estimators for one country"""

    model_config = ConfigDict(frozen=True)

    currency: str
    purchase_tax: PurchaseTaxRates
    other_fees: FeeSchedule = FeeSchedule()
    council_tax: FeeSchedule = FeeSchedule()
    utilities: FeeSchedule = FeeSchedule()
    property_tax: FeeSchedule = FeeSchedule()


class SensitivityLevels(BaseModel):
    """APR levels (%) x rent multipliers of the ROI grid"""

    model_config = ConfigDict(frozen=True)

    apr_levels: Tuple[float, ...] = (3.0, 5.0, 7.0)
    rent_multipliers: Tuple[float, ...] = (0.9, 1.0, 1.1)


class Limits(BaseModel):
    """Clamp ranges for percentage inputs"""

    model_config = ConfigDict(frozen=True)

    percent_cap: float = 100.0
    apr_cap: float = 50.0


class RateTables(BaseModel):
    """Complete engine configuration (every ``Country`` must be present)"""

    model_config = ConfigDict(frozen=True)

    countries: Dict[Country, CountryRates]
    sensitivity: SensitivityLevels = SensitivityLevels()
    limits: Limits = Limits()

    @model_validator(mode="after")
    def _check_all_countries(self) -> "RateTables":
        missing = [c.value for c in Country if c not in self.countries]
        if missing:
            raise ValueError(f"rate tables missing countries: {', '.join(missing)}")
        return self

    def for_country(self, country: Country) -> CountryRates:
        """Rates of one country."""
        return self.countries[country]

    def currency_for(self, country: Country) -> str:
        """ISO currency code used for a country's amounts."""
        return self.countries[country].currency


def get_default_rate_tables() -> Dict[str, Any]:
    """Built-in defaults (mirrors config/rate_tables.yaml)"""
    return {
        "sensitivity": {
            "apr_levels": [3.0, 5.0, 7.0],
            "rent_multipliers": [0.9, 1.0, 1.1],
        },
        "limits": {"percent_cap": 100.0, "apr_cap": 50.0},
        "countries": {
            "uk": {
                "currency": "GBP",
                "purchase_tax": {
                    "bands": [
                        {"up_to": 125000, "rate": 0.00},
                        {"up_to": 250000, "rate": 0.02},
                        {"up_to": 925000, "rate": 0.05},
                        {"up_to": 1500000, "rate": 0.10},
                        {"up_to": None, "rate": 0.12},
                    ],
                    "additional_home_surcharge": 0.05,
                    "non_resident_surcharge": 0.02,
                    "first_time_buyer": {
                        "max_price": 500000,
                        "bands": [
                            {"up_to": 300000, "rate": 0.00},
                            {"up_to": 500000, "rate": 0.05},
                        ],
                    },
                },
                "other_fees": {
                    "tiers": [
                        {"up_to": 80000, "fee": 20},
                        {"up_to": 100000, "fee": 40},
                        {"up_to": 200000, "fee": 100},
                        {"up_to": 500000, "fee": 150},
                        {"up_to": 1000000, "fee": 295},
                        {"up_to": None, "fee": 500},
                    ],
                    "fixed_fees": {"search_and_admin": 300},
                },
                "council_tax": {"rate": 0.005, "minimum": 1200, "maximum": 3000},
                "utilities": {"fixed_fees": {"utilities_and_broadband": 2000}},
            },
            "uae": {
                "currency": "AED",
                "purchase_tax": {"rate": 0.04},
                "other_fees": {"fixed_fees": {"trustee": 4000, "admin": 580}},
            },
            "th": {
                "currency": "THB",
                "purchase_tax": {"rate": 0.02},
                "other_fees": {"rate": 0.002, "minimum": 25000},
            },
            "jp": {
                "currency": "JPY",
                "purchase_tax": {"rate": 0.01},
                "other_fees": {"rate": 0.0015, "minimum": 120000},
                "property_tax": {"rate": 0.014},
            },
        },
    }


def load_rate_tables(path: Optional[str] = None) -> RateTables:
    """Load rate tables from YAML.

    Lookup order: explicit ``path``, ``$GPC_RATE_TABLES``, the packaged file.
    A missing, unreadable or invalid file falls back to the defaults.
    """
    config_path = path or os.environ.get(RATE_TABLES_ENV) or DEFAULT_RATE_TABLES_PATH

    if not os.path.exists(config_path):
        logger.warning("Rate table file not found: %s (using defaults)", config_path)
        return RateTables.model_validate(get_default_rate_tables())

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        if not isinstance(raw, dict):
            raise ValueError("rate table root must be a mapping")
        return RateTables.model_validate(raw)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning("Invalid rate table file %s: %s (using defaults)", config_path, e)
        return RateTables.model_validate(get_default_rate_tables())


_ACTIVE_TABLES: Optional[RateTables] = None


def get_rate_tables() -> RateTables:
    """Process-wide tables, loaded on first use."""
    global _ACTIVE_TABLES  # pylint: disable=global-statement
    if _ACTIVE_TABLES is None:
        _ACTIVE_TABLES = load_rate_tables()
    return _ACTIVE_TABLES


def reset_rate_tables() -> None:
    """Drop the cached tables so the next call reloads (tests, config reload)."""
    global _ACTIVE_TABLES  # pylint: disable=global-statement
    _ACTIVE_TABLES = None
