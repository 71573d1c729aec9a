"""Shared fixtures"""
# pylint: disable=import-error,redefined-outer-name


from typing import Any, Dict

import pytest

from global_property_mcp.models.valuation_model import ValuationInput
from global_property_mcp.utils.normalization import build_valuation_input
from global_property_mcp.utils.rate_tables import (
    RateTables,
    get_default_rate_tables,
    reset_rate_tables,
)
from tests.helpers.shared import (
    DEFAULT_CALCULATION_CASES,
    UAE_INVESTMENT_CASE,
    UK_INVESTMENT_CASE,
    UK_OWNER_CASE,
)


@pytest.fixture(autouse=True)
def _fresh_rate_tables(monkeypatch):
    """Every test starts from the packaged tables (no env override, no cache)."""
    monkeypatch.delenv("GPC_RATE_TABLES", raising=False)
    reset_rate_tables()
    yield
    reset_rate_tables()


@pytest.fixture
def rate_tables() -> RateTables:
    """Built-in default tables"""
    return RateTables.model_validate(get_default_rate_tables())


@pytest.fixture
def uk_investment_input() -> ValuationInput:
    """UK buy-to-let, additional home, resident buyer"""
    return build_valuation_input(UK_INVESTMENT_CASE)


@pytest.fixture
def uae_investment_input() -> ValuationInput:
    """Dubai investment"""
    return build_valuation_input(UAE_INVESTMENT_CASE)


@pytest.fixture
def uk_owner_input() -> ValuationInput:
    """UK owner-occupier"""
    return build_valuation_input(UK_OWNER_CASE)


@pytest.fixture
def calculation_test_data() -> Dict[str, Dict[str, Any]]:
    """Calculator arguments keyed by case name"""
    return {name: dict(case) for name, case in DEFAULT_CALCULATION_CASES.items()}
