"""Valuation input / result records.

Every record is frozen: it is built once per calculation, handed to the
formatting or report layer and then discarded.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class Country(str, Enum):
    """Supported markets"""

    UK = "uk"
    UAE = "uae"
    THAILAND = "th"
    JAPAN = "jp"


class Language(str, Enum):
    """Output language"""

    EN = "en"
    ZH = "zh"


class Purpose(str, Enum):
    """Which result branch is computed"""

    INVESTMENT = "investment"
    OWNER_OCCUPIED = "owner"


class BuyerResidency(str, Enum):
    """Buyer residency (UK stamp duty only)"""

    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"


class HomeCount(str, Enum):
    """First or additional home (UK stamp duty only)"""

    FIRST = "first"
    ADDITIONAL = "additional"


class ValuationInput(BaseModel):
    """Normalized calculator input.

    Numeric fields are taken as given; the engine clamps percentages and
    floors money amounts at zero, so the record itself accepts any float.
    """

    model_config = ConfigDict(frozen=True)

    country: Country = Field(..., description="Market whose tax/fee formulas apply")
    purpose: Purpose = Field(..., description="Investment or owner-occupied")
    price: float = Field(..., description="Purchase price (local currency)")
    monthly_rent: float = Field(..., description="Monthly rent (investment only)")
    agent_fee_percent: float = Field(..., description="Letting agent fee, % of rent")
    mortgage_percent: float = Field(..., description="Loan to value, %")
    apr_percent: float = Field(..., description="Annual interest rate, %")
    annual_holding_costs: float = Field(
        ..., description="Service charge, insurance and other recurring costs"
    )
    other_one_off_costs: float = Field(
        ..., description="Legal, furnishing and other one-off costs"
    )

    # owner-occupied only
    annual_property_fee: float = Field(
        default=0.0, description="Management / property fee paid by an owner-occupier"
    )

    # UK only
    buyer_residency: BuyerResidency = Field(default=BuyerResidency.RESIDENT)
    home_count: HomeCount = Field(default=HomeCount.FIRST)


class SensitivityCell(BaseModel):
    """One (APR level, rent multiplier) recomputation"""

    model_config = ConfigDict(frozen=True)

    apr_percent: float
    rent_multiplier: float
    gross_annual_rent: float
    agent_fee_annual: float
    annual_interest_cost: float
    net_annual_rent: float
    cash_on_cash_percent: float


class InvestmentResult(BaseModel):
    """Result of an investment calculation"""

    model_config = ConfigDict(frozen=True)

    purpose: Literal[Purpose.INVESTMENT] = Purpose.INVESTMENT
    country: Country
    currency: str

    # one-off
    purchase_tax: float
    other_gov_fees: float
    other_one_off_costs: float
    upfront_costs: float

    # financing (interest only)
    loan_amount: float
    cash_deposit: float
    annual_interest_cost: float

    # cashflow
    gross_annual_rent: float
    agent_fee_annual: float
    annual_holding_costs: float
    net_annual_rent: float

    net_yield_percent: float
    cash_on_cash_percent: float

    sensitivity: Optional[Tuple[SensitivityCell, ...]] = None

    @property
    def cash_invested(self) -> float:
        """Deposit plus upfront costs (cash-on-cash denominator)"""
        return self.cash_deposit + self.upfront_costs

    def sensitivity_cell(
        self, apr_percent: float, rent_multiplier: float
    ) -> Optional[SensitivityCell]:
        """Look up a grid cell, None when absent."""
        for cell in self.sensitivity or ():
            if (
                cell.apr_percent == apr_percent
                and cell.rent_multiplier == rent_multiplier
            ):
                return cell
        return None


class OwnerOccupiedResult(BaseModel):
    """Result of an owner-occupier calculation"""

    model_config = ConfigDict(frozen=True)

    purpose: Literal[Purpose.OWNER_OCCUPIED] = Purpose.OWNER_OCCUPIED
    country: Country
    currency: str

    purchase_tax: float
    other_gov_fees: float
    other_one_off_costs: float
    upfront_costs: float

    annual_council_or_municipal_tax: float
    annual_utilities: float
    annual_property_tax: float
    annual_service_charge: float
    annual_property_fee: float
    annual_total_running_costs: float
    monthly_running_costs: float

    # running costs plus upfront costs
    first_year_total_outgoings: float


ValuationResult = Annotated[
    Union[InvestmentResult, OwnerOccupiedResult], Field(discriminator="purpose")
]
