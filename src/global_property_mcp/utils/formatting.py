"""Display formatting for valuation results.

Language is always passed in explicitly; nothing here keeps UI state.
"""

import math
from typing import Dict, List, Union

from ..models.valuation_model import (
    Country,
    InvestmentResult,
    Language,
    OwnerOccupiedResult,
    Purpose,
    ValuationInput,
)

COUNTRY_NAMES: Dict[Language, Dict[Country, str]] = {
    Language.EN: {
        Country.UK: "UK",
        Country.UAE: "UAE",
        Country.THAILAND: "Thailand",
        Country.JAPAN: "Japan",
    },
    Language.ZH: {
        Country.UK: "英国",
        Country.UAE: "阿联酋",
        Country.THAILAND: "泰国",
        Country.JAPAN: "日本",
    },
}

LABELS: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "title": "Global Property Calculator",
        "country": "Country",
        "currency": "Currency",
        "purpose": "Purpose",
        "investment": "Investment",
        "owner": "Owner-occupier (self-use)",
        "price": "Property price",
        "monthly_rent": "Monthly rent",
        "agent_fee_percent": "Letting agent fee",
        "mortgage_percent": "Mortgage",
        "apr_percent": "APR",
        "annual_holding_costs": "Annual holding costs",
        "other_one_off_costs": "Other one-off costs",
        "buyer_residency": "Buyer residency (UK)",
        "home_count": "Home count (UK)",
        "resident": "Resident",
        "non_resident": "Non-resident",
        "first": "First home",
        "additional": "Additional home",
        "purchase_tax": "Stamp duty / purchase tax",
        "other_gov_fees": "Government / solicitor fees (estimated)",
        "upfront_costs": "Upfront costs",
        "loan_amount": "Loan amount",
        "cash_deposit": "Cash deposit",
        "annual_interest_cost": "Annual interest cost",
        "gross_annual_rent": "Gross annual rent",
        "agent_fee_annual": "Letting agent fee (annual)",
        "net_annual_rent": "Net annual rent",
        "net_yield_percent": "Net yield (on price)",
        "cash_on_cash_percent": "Estimated cash-on-cash ROI",
        "annual_council_or_municipal_tax": "Council tax (estimated)",
        "annual_utilities": "Utilities + broadband (estimated)",
        "annual_property_tax": "Property tax (estimated)",
        "annual_service_charge": "Service charge",
        "annual_property_fee": "Property management fee",
        "annual_total_running_costs": "Annual fixed outgoings",
        "monthly_running_costs": "Per month",
        "first_year_total_outgoings": "First-year total outgoings",
        "sensitivity": "Sensitivity (Rent vs APR)",
        "sensitivity_hint": (
            "Cash-on-cash ROI (%) under rent change x APR change. "
            "Interest-only assumed."
        ),
        "rent": "Rent",
        "assumptions": "Assumptions",
        "outputs": "Results",
        "generated_at": "Generated",
        "disclaimer": (
            "Disclaimer: Estimates only. Taxes/fees vary by buyer profile and "
            "local regulations. This report is not financial advice."
        ),
    },
    Language.ZH: {
        "title": "全球房产投资计算器",
        "country": "国家",
        "currency": "币种",
        "purpose": "用途",
        "investment": "投资",
        "owner": "自住",
        "price": "房产价格",
        "monthly_rent": "月租金",
        "agent_fee_percent": "租房中介费",
        "mortgage_percent": "贷款比例",
        "apr_percent": "年利率",
        "annual_holding_costs": "物业费/地税",
        "other_one_off_costs": "其他一次性费用",
        "buyer_residency": "买家身份（英国）",
        "home_count": "首套/二套（英国）",
        "resident": "本地买家",
        "non_resident": "海外买家",
        "first": "首套",
        "additional": "二套",
        "purchase_tax": "印花税/购置税",
        "other_gov_fees": "政府/律师等费用（预估）",
        "upfront_costs": "一次性成本合计",
        "loan_amount": "贷款额",
        "cash_deposit": "首付现金",
        "annual_interest_cost": "年度利息成本",
        "gross_annual_rent": "年度总租金",
        "agent_fee_annual": "租房中介费（年度）",
        "net_annual_rent": "年度净租金",
        "net_yield_percent": "净回报率（按房价）",
        "cash_on_cash_percent": "预估现金回报率",
        "annual_council_or_municipal_tax": "市政税/地方税（预估）",
        "annual_utilities": "水电煤网费（预估）",
        "annual_property_tax": "房产税（预估）",
        "annual_service_charge": "服务费",
        "annual_property_fee": "物业管理费",
        "annual_total_running_costs": "年度固定支出",
        "monthly_running_costs": "折合每月",
        "first_year_total_outgoings": "第一年总支出（固定 + 一次性）",
        "sensitivity": "敏感性分析（租金 vs 利率）",
        "sensitivity_hint": "租金变化 × 利率变化下的现金回报率（只算利息）。",
        "rent": "租金",
        "assumptions": "假设条件",
        "outputs": "测算结果",
        "generated_at": "生成时间",
        "disclaimer": "免责声明：仅为估算。税费随买家身份、城市、政策等变化。本报告不构成投资建议。",
    },
}

INVESTMENT_INPUT_FIELDS = (
    "price",
    "monthly_rent",
    "agent_fee_percent",
    "mortgage_percent",
    "apr_percent",
    "annual_holding_costs",
    "other_one_off_costs",
)
OWNER_INPUT_FIELDS = (
    "price",
    "annual_holding_costs",
    "annual_property_fee",
    "other_one_off_costs",
)

INVESTMENT_OUTPUT_FIELDS = (
    "purchase_tax",
    "other_gov_fees",
    "other_one_off_costs",
    "upfront_costs",
    "loan_amount",
    "cash_deposit",
    "annual_interest_cost",
    "gross_annual_rent",
    "agent_fee_annual",
    "annual_holding_costs",
    "net_annual_rent",
    "net_yield_percent",
    "cash_on_cash_percent",
)
OWNER_OUTPUT_FIELDS = (
    "purchase_tax",
    "other_gov_fees",
    "other_one_off_costs",
    "upfront_costs",
    "annual_council_or_municipal_tax",
    "annual_utilities",
    "annual_property_tax",
    "annual_service_charge",
    "annual_property_fee",
    "annual_total_running_costs",
    "monthly_running_costs",
    "first_year_total_outgoings",
)

PERCENT_FIELDS = frozenset(
    {
        "agent_fee_percent",
        "mortgage_percent",
        "apr_percent",
        "net_yield_percent",
        "cash_on_cash_percent",
    }
)


def format_money(value: float) -> str:
    """Whole units with thousands separators ("1,234,567"), halves rounded up."""
    if value is None or not math.isfinite(value):
        return "0"
    return f"{math.floor(value + 0.5):,}"


def format_percent(value: float) -> str:
    """Two decimals plus % ("5.25%")."""
    if value is None or not math.isfinite(value):
        value = 0.0
    return f"{value:.2f}%"


def format_value(field: str, value: float) -> str:
    """Format a record field by name (percent fields vs money)."""
    if field in PERCENT_FIELDS:
        return format_percent(value)
    return format_money(value)


def label(field: str, lang: Language = Language.EN) -> str:
    """Localized label, falling back to English then to the field name."""
    return LABELS[lang].get(field) or LABELS[Language.EN].get(field, field)


def country_label(country: Country, lang: Language = Language.EN) -> str:
    """Localized country name."""
    return COUNTRY_NAMES[lang][country]


def input_rows(valuation_input: ValuationInput, lang: Language = Language.EN) -> List[tuple]:
    """(label, formatted value) rows for the assumptions section."""
    fields = (
        INVESTMENT_INPUT_FIELDS
        if valuation_input.purpose == Purpose.INVESTMENT
        else OWNER_INPUT_FIELDS
    )
    rows = [
        (label(field, lang), format_value(field, getattr(valuation_input, field)))
        for field in fields
    ]
    if valuation_input.country == Country.UK:
        rows.append(
            (
                label("buyer_residency", lang),
                label(valuation_input.buyer_residency.value, lang),
            )
        )
        rows.append(
            (label("home_count", lang), label(valuation_input.home_count.value, lang))
        )
    return rows


def result_rows(
    result: Union[InvestmentResult, OwnerOccupiedResult],
    lang: Language = Language.EN,
) -> List[tuple]:
    """(label, formatted value) rows for the outputs section."""
    fields = (
        INVESTMENT_OUTPUT_FIELDS
        if isinstance(result, InvestmentResult)
        else OWNER_OUTPUT_FIELDS
    )
    return [
        (label(field, lang), format_value(field, getattr(result, field)))
        for field in fields
    ]


def sensitivity_matrix(result: InvestmentResult) -> List[List[str]]:
    """
    Sensitivity grid as a text matrix

    First row is the header (APR levels), each following row is one rent
    multiplier. Empty when the result carries no grid.
    """
    if not result.sensitivity:
        return []
    aprs = sorted({cell.apr_percent for cell in result.sensitivity})
    multipliers = sorted({cell.rent_multiplier for cell in result.sensitivity})
    matrix = [[""] + [f"APR {apr:g}%" for apr in aprs]]
    for multiplier in multipliers:
        row = [f"x{multiplier:.2f}"]
        for apr in aprs:
            cell = result.sensitivity_cell(apr, multiplier)
            row.append(format_percent(cell.cash_on_cash_percent) if cell else "-")
        matrix.append(row)
    return matrix


def format_summary(
    valuation_input: ValuationInput,
    result: Union[InvestmentResult, OwnerOccupiedResult],
    lang: Language = Language.EN,
) -> str:
    """Plain text summary of one calculation."""
    purpose_label = label(valuation_input.purpose.value, lang)
    lines = [
        f"🏠 {label('title', lang)}",
        "",
        f"・{label('country', lang)}: {country_label(result.country, lang)}",
        f"・{label('currency', lang)}: {result.currency}",
        f"・{label('purpose', lang)}: {purpose_label}",
        "",
    ]
    lines.extend(f"・{name}: {value}" for name, value in input_rows(valuation_input, lang))
    lines.append("")
    lines.extend(f"・{name}: {value}" for name, value in result_rows(result, lang))

    if isinstance(result, InvestmentResult) and result.sensitivity:
        lines.extend(["", f"📊 {label('sensitivity', lang)}"])
        lines.extend(" | ".join(row) for row in sensitivity_matrix(result))
    return "\n".join(lines) + "\n"
