# src/global_property_mcp/utils/calculations.py
"""Property cost / return calculation engine.

All functions are pure: no I/O, no shared state, no exceptions for numeric
input. Out-of-range percentages are clamped and negative money amounts are
floored at zero so every input produces a result.
"""

import math
from typing import Callable, Dict, Iterable, NamedTuple, Optional, Tuple, Union

from ..models.valuation_model import (
    BuyerResidency,
    Country,
    HomeCount,
    InvestmentResult,
    OwnerOccupiedResult,
    Purpose,
    SensitivityCell,
    ValuationInput,
)
from .rate_tables import (
    CountryRates,
    FeeSchedule,
    PurchaseTaxRates,
    RateTables,
    TaxBand,
    get_rate_tables,
)

MONTHS_PER_YEAR = 12


def clamp_percent(value: float, upper: float = 100.0) -> float:
    """Clamp a percentage into [0, upper]; NaN / inf become 0."""
    if value is None or not math.isfinite(value):
        return 0.0
    return max(0.0, min(upper, float(value)))


def non_negative(value: float) -> float:
    """Floor a money amount at 0 (NaN / inf become 0)."""
    if value is None or not math.isfinite(value):
        return 0.0
    return max(0.0, float(value))


def calculate_banded_tax(
    price: float, bands: Iterable[TaxBand], surcharge: float = 0.0
) -> float:
    """
    Marginal band tax

    Args:
        price: taxable price
        bands: ascending bands, the last one may be open (up_to=None)
        surcharge: rate added to every band, including nil-rate bands

    Returns:
        float: tax amount
    """
    tax = 0.0
    lower = 0.0
    for band in bands:
        cap = float("inf") if band.up_to is None else band.up_to
        portion = max(0.0, min(price, cap) - lower)
        if portion <= 0:
            break
        tax += portion * (band.rate + surcharge)
        lower = cap
    return tax


def calculate_stamp_duty_surcharge(
    rates: PurchaseTaxRates,
    buyer_residency: BuyerResidency,
    home_count: HomeCount,
) -> float:
    """Surcharge rate for the buyer profile (both surcharges stack)."""
    surcharge = 0.0
    if home_count == HomeCount.ADDITIONAL:
        surcharge += rates.additional_home_surcharge
    if buyer_residency == BuyerResidency.NON_RESIDENT:
        surcharge += rates.non_resident_surcharge
    return surcharge


def calculate_purchase_tax(
    price: float,
    rates: PurchaseTaxRates,
    buyer_residency: BuyerResidency = BuyerResidency.RESIDENT,
    home_count: HomeCount = HomeCount.FIRST,
) -> float:
    """
    Purchase tax (stamp duty / transfer duty)

    Banded schedules (UK SDLT) honour the buyer profile: first-time buyer
    relief replaces the standard bands for first homes at or below the relief
    threshold, and surcharges are added per band. Countries without bands pay
    a flat rate of the price.
    """
    price = non_negative(price)
    if price <= 0:
        return 0.0
    if not rates.bands:
        return price * rates.rate

    surcharge = calculate_stamp_duty_surcharge(rates, buyer_residency, home_count)
    bands: Tuple[TaxBand, ...] = rates.bands
    relief = rates.first_time_buyer
    if home_count == HomeCount.FIRST and relief and price <= relief.max_price:
        bands = relief.bands
    return calculate_banded_tax(price, bands, surcharge)


def estimate_fee_schedule(price: float, schedule: FeeSchedule) -> float:
    """
    Estimate one fee line from a schedule

    tier fee (first tier covering the price) + fixed fees + proportional part
    bounded by ``minimum`` / ``maximum``. A zero price estimates zero.
    """
    price = non_negative(price)
    if price <= 0:
        return 0.0

    tier_fee = 0.0
    for tier in schedule.tiers:
        if tier.up_to is None or price <= tier.up_to:
            tier_fee = tier.fee
            break

    proportional = 0.0
    if schedule.rate > 0 or schedule.minimum > 0:
        proportional = max(price * schedule.rate, schedule.minimum)
        if schedule.maximum is not None:
            proportional = min(proportional, schedule.maximum)

    return tier_fee + sum(schedule.fixed_fees.values()) + proportional


def calculate_other_gov_fees(price: float, rates: CountryRates) -> float:
    """Government / registry / admin fee estimate."""
    return estimate_fee_schedule(price, rates.other_fees)


def calculate_loan_split(price: float, mortgage_percent: float) -> Tuple[float, float]:
    """
    Loan / cash deposit split

    Returns:
        Tuple[float, float]: (loan_amount, cash_deposit)
    """
    price = non_negative(price)
    loan_amount = price * clamp_percent(mortgage_percent) / 100
    return loan_amount, price - loan_amount


def calculate_annual_interest(loan_amount: float, apr_percent: float) -> float:
    """Interest-only annual cost (no amortisation)."""
    return loan_amount * apr_percent / 100


def calculate_net_yield(net_annual_rent: float, price: float) -> float:
    """Net yield on price (%), 0 without price."""
    if price <= 0:
        return 0.0
    return net_annual_rent / price * 100


def calculate_cash_on_cash(net_annual_rent: float, cash_invested: float) -> float:
    """Cash-on-cash ROI (%), 0 when nothing was invested."""
    if cash_invested <= 0:
        return 0.0
    return net_annual_rent / cash_invested * 100


class RentalCashflow(NamedTuple):
    """Annual rental cashflow lines"""

    gross_annual_rent: float
    agent_fee_annual: float
    annual_interest_cost: float
    net_annual_rent: float


def calculate_rental_cashflow(
    monthly_rent: float,
    agent_fee_percent: float,
    annual_holding_costs: float,
    loan_amount: float,
    apr_percent: float,
    rent_multiplier: float = 1.0,
) -> RentalCashflow:
    """
    Annual rental cashflow

    Percentages must already be clamped. Net rent is not floored: negative
    cashflow stays negative.
    """
    gross_annual_rent = monthly_rent * MONTHS_PER_YEAR * rent_multiplier
    agent_fee_annual = gross_annual_rent * agent_fee_percent / 100
    annual_interest_cost = calculate_annual_interest(loan_amount, apr_percent)
    net_annual_rent = (
        gross_annual_rent - agent_fee_annual - annual_holding_costs - annual_interest_cost
    )
    return RentalCashflow(
        gross_annual_rent, agent_fee_annual, annual_interest_cost, net_annual_rent
    )


def calculate_sensitivity_grid(
    monthly_rent: float,
    agent_fee_percent: float,
    annual_holding_costs: float,
    loan_amount: float,
    cash_invested: float,
    tables: RateTables,
) -> Tuple[SensitivityCell, ...]:
    """
    Cash-on-cash ROI under rent x APR perturbations

    Cells are ordered APR-major. Each cell is an independent recomputation
    with only the APR and the rent multiplier substituted.
    """
    cells = []
    for apr_level in tables.sensitivity.apr_levels:
        apr = clamp_percent(apr_level, tables.limits.apr_cap)
        for multiplier in tables.sensitivity.rent_multipliers:
            flow = calculate_rental_cashflow(
                monthly_rent,
                agent_fee_percent,
                annual_holding_costs,
                loan_amount,
                apr,
                rent_multiplier=multiplier,
            )
            cells.append(
                SensitivityCell(
                    apr_percent=apr,
                    rent_multiplier=multiplier,
                    gross_annual_rent=flow.gross_annual_rent,
                    agent_fee_annual=flow.agent_fee_annual,
                    annual_interest_cost=flow.annual_interest_cost,
                    net_annual_rent=flow.net_annual_rent,
                    cash_on_cash_percent=calculate_cash_on_cash(
                        flow.net_annual_rent, cash_invested
                    ),
                )
            )
    return tuple(cells)


def _one_off_costs(
    valuation_input: ValuationInput, rates: CountryRates
) -> Dict[str, float]:
    """Purchase tax, government fees and self-reported one-off costs."""
    purchase_tax = calculate_purchase_tax(
        valuation_input.price,
        rates.purchase_tax,
        valuation_input.buyer_residency,
        valuation_input.home_count,
    )
    other_gov_fees = calculate_other_gov_fees(valuation_input.price, rates)
    other_one_off_costs = non_negative(valuation_input.other_one_off_costs)
    return {
        "purchase_tax": purchase_tax,
        "other_gov_fees": other_gov_fees,
        "other_one_off_costs": other_one_off_costs,
        "upfront_costs": purchase_tax + other_gov_fees + other_one_off_costs,
    }


def calculate_investment(
    valuation_input: ValuationInput,
    tables: RateTables,
    include_sensitivity: bool = True,
) -> InvestmentResult:
    """Investment branch: upfront costs, financing, cashflow, ratios."""
    rates = tables.for_country(valuation_input.country)
    price = non_negative(valuation_input.price)
    one_off = _one_off_costs(valuation_input, rates)

    agent_fee_percent = clamp_percent(
        valuation_input.agent_fee_percent, tables.limits.percent_cap
    )
    apr_percent = clamp_percent(valuation_input.apr_percent, tables.limits.apr_cap)
    monthly_rent = non_negative(valuation_input.monthly_rent)
    holding = non_negative(valuation_input.annual_holding_costs)

    loan_amount, cash_deposit = calculate_loan_split(
        price, clamp_percent(valuation_input.mortgage_percent, tables.limits.percent_cap)
    )
    flow = calculate_rental_cashflow(
        monthly_rent, agent_fee_percent, holding, loan_amount, apr_percent
    )
    cash_invested = cash_deposit + one_off["upfront_costs"]

    if flow.gross_annual_rent > 0:
        net_yield = calculate_net_yield(flow.net_annual_rent, price)
        cash_on_cash = calculate_cash_on_cash(flow.net_annual_rent, cash_invested)
    else:
        net_yield = cash_on_cash = 0.0

    sensitivity: Optional[Tuple[SensitivityCell, ...]] = None
    if include_sensitivity:
        sensitivity = calculate_sensitivity_grid(
            monthly_rent, agent_fee_percent, holding, loan_amount, cash_invested, tables
        )

    return InvestmentResult(
        country=valuation_input.country,
        currency=rates.currency,
        **one_off,
        loan_amount=loan_amount,
        cash_deposit=cash_deposit,
        annual_interest_cost=flow.annual_interest_cost,
        gross_annual_rent=flow.gross_annual_rent,
        agent_fee_annual=flow.agent_fee_annual,
        annual_holding_costs=holding,
        net_annual_rent=flow.net_annual_rent,
        net_yield_percent=net_yield,
        cash_on_cash_percent=cash_on_cash,
        sensitivity=sensitivity,
    )


def calculate_owner_costs(
    valuation_input: ValuationInput,
    tables: RateTables,
    include_sensitivity: bool = False,  # pylint: disable=unused-argument
) -> OwnerOccupiedResult:
    """Owner-occupier branch: upfront costs plus annual running costs."""
    rates = tables.for_country(valuation_input.country)
    price = non_negative(valuation_input.price)
    one_off = _one_off_costs(valuation_input, rates)

    council_tax = estimate_fee_schedule(price, rates.council_tax)
    utilities = estimate_fee_schedule(price, rates.utilities)
    property_tax = estimate_fee_schedule(price, rates.property_tax)
    service_charge = non_negative(valuation_input.annual_holding_costs)
    property_fee = non_negative(valuation_input.annual_property_fee)
    annual_total = (
        council_tax + utilities + property_tax + service_charge + property_fee
    )

    return OwnerOccupiedResult(
        country=valuation_input.country,
        currency=rates.currency,
        **one_off,
        annual_council_or_municipal_tax=council_tax,
        annual_utilities=utilities,
        annual_property_tax=property_tax,
        annual_service_charge=service_charge,
        annual_property_fee=property_fee,
        annual_total_running_costs=annual_total,
        monthly_running_costs=annual_total / MONTHS_PER_YEAR,
        first_year_total_outgoings=annual_total + one_off["upfront_costs"],
    )


CalculationResult = Union[InvestmentResult, OwnerOccupiedResult]

_PURPOSE_CALCULATORS: Dict[
    Purpose, Callable[[ValuationInput, RateTables, bool], CalculationResult]
] = {
    Purpose.INVESTMENT: calculate_investment,
    Purpose.OWNER_OCCUPIED: calculate_owner_costs,
}


def zero_input(valuation_input: ValuationInput) -> ValuationInput:
    """Copy of the input with every numeric field zeroed."""
    return valuation_input.model_copy(
        update={
            "price": 0.0,
            "monthly_rent": 0.0,
            "agent_fee_percent": 0.0,
            "mortgage_percent": 0.0,
            "apr_percent": 0.0,
            "annual_holding_costs": 0.0,
            "other_one_off_costs": 0.0,
            "annual_property_fee": 0.0,
        }
    )


def compute(
    valuation_input: ValuationInput,
    tables: Optional[RateTables] = None,
    include_sensitivity: bool = True,
) -> CalculationResult:
    """
    Run the valuation for one input

    Args:
        valuation_input: normalized input record
        tables: rate tables (defaults to the process-wide tables)
        include_sensitivity: attach the ROI grid to investment results

    Returns:
        InvestmentResult | OwnerOccupiedResult depending on ``purpose``.
        A non-positive (or NaN) price yields a zero-valued result.
    """
    tables = tables or get_rate_tables()
    if not valuation_input.price > 0:
        valuation_input = zero_input(valuation_input)
    calculator = _PURPOSE_CALCULATORS[valuation_input.purpose]
    return calculator(valuation_input, tables, include_sensitivity)


def compare_countries(
    valuation_input: ValuationInput,
    countries: Iterable[Country],
    tables: Optional[RateTables] = None,
) -> Dict[Country, CalculationResult]:
    """Run the same numeric input across several countries."""
    tables = tables or get_rate_tables()
    return {
        country: compute(
            valuation_input.model_copy(update={"country": country}),
            tables,
            include_sensitivity=False,
        )
        for country in countries
    }
