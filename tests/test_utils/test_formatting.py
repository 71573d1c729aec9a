"""Display formatting tests"""

import pytest

from global_property_mcp.models.valuation_model import BuyerResidency, Country, Language
from global_property_mcp.utils.calculations import compute
from global_property_mcp.utils.formatting import (
    LABELS,
    country_label,
    format_money,
    format_percent,
    format_summary,
    input_rows,
    label,
    result_rows,
    sensitivity_matrix,
)


class TestNumberFormats:
    """Money / percent strings"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0"),
            (1234567.4, "1,234,567"),
            (65000.0, "65,000"),
            (-510.0, "-510"),
            (2.5, "3"),
            (1234.5, "1,235"),
            (-2.5, "-2"),
            (float("nan"), "0"),
        ],
    )
    def test_format_money(self, value, expected):
        assert format_money(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [(5.25, "5.25%"), (4.0899, "4.09%"), (0, "0.00%"), (float("inf"), "0.00%")],
    )
    def test_format_percent(self, value, expected):
        assert format_percent(value) == expected


class TestLabels:
    """Localized labels"""

    def test_every_english_label_translated(self):
        assert set(LABELS[Language.EN]) == set(LABELS[Language.ZH])

    def test_label_fallback_to_field_name(self):
        assert label("no_such_field", Language.ZH) == "no_such_field"

    def test_country_label(self):
        assert country_label(Country.UAE) == "UAE"
        assert country_label(Country.JAPAN, Language.ZH) == "日本"


class TestRows:
    """Assumption / output rows"""

    def test_uk_input_rows_include_buyer_profile(self, uk_investment_input):
        rows = dict(input_rows(uk_investment_input))
        assert rows["Property price"] == "750,000"
        assert rows["Mortgage"] == "70.00%"
        assert rows["Home count (UK)"] == "Additional home"
        assert rows["Buyer residency (UK)"] == "Resident"

    def test_uk_buyer_profile_localized(self, uk_investment_input):
        non_resident = uk_investment_input.model_copy(
            update={"buyer_residency": BuyerResidency.NON_RESIDENT}
        )
        rows = dict(input_rows(non_resident, Language.ZH))
        assert rows["买家身份（英国）"] == "海外买家"
        assert rows["首套/二套（英国）"] == "二套"

    def test_non_uk_input_rows_skip_buyer_profile(self, uae_investment_input):
        names = [name for name, _ in input_rows(uae_investment_input)]
        assert "Buyer residency (UK)" not in names

    def test_owner_input_rows(self, uk_owner_input):
        names = [name for name, _ in input_rows(uk_owner_input)]
        assert "Monthly rent" not in names
        assert "Property price" in names

    def test_investment_result_rows(self, uk_investment_input, rate_tables):
        result = compute(uk_investment_input, rate_tables)
        rows = dict(result_rows(result))
        assert rows["Stamp duty / purchase tax"] == "65,000"
        assert rows["Loan amount"] == "525,000"
        assert rows["Net annual rent"] == "-510"

    def test_owner_result_rows_chinese(self, uk_owner_input, rate_tables):
        result = compute(uk_owner_input, rate_tables)
        rows = dict(result_rows(result, Language.ZH))
        assert rows["市政税/地方税（预估）"] == "1,500"
        assert rows["水电煤网费（预估）"] == "2,000"


class TestSensitivityMatrix:
    """Grid as text"""

    def test_layout(self, uae_investment_input, rate_tables):
        result = compute(uae_investment_input, rate_tables)
        matrix = sensitivity_matrix(result)

        assert matrix[0] == ["", "APR 3%", "APR 5%", "APR 7%"]
        assert [row[0] for row in matrix[1:]] == ["x0.90", "x1.00", "x1.10"]
        center = result.sensitivity_cell(5.0, 1.0).cash_on_cash_percent
        assert matrix[2][2] == format_percent(center)

    def test_empty_without_grid(self, uae_investment_input, rate_tables):
        result = compute(uae_investment_input, rate_tables, include_sensitivity=False)
        assert sensitivity_matrix(result) == []


class TestSummary:
    """Plain text summary"""

    def test_investment_summary(self, uk_investment_input, rate_tables):
        result = compute(uk_investment_input, rate_tables)
        text = format_summary(uk_investment_input, result)

        assert text.startswith("🏠 Global Property Calculator")
        assert "・Currency: GBP" in text
        assert "・Stamp duty / purchase tax: 65,000" in text
        assert "📊 Sensitivity (Rent vs APR)" in text

    def test_owner_summary_chinese(self, uk_owner_input, rate_tables):
        result = compute(uk_owner_input, rate_tables)
        text = format_summary(uk_owner_input, result, Language.ZH)

        assert "全球房产投资计算器" in text
        assert "・用途: 自住" in text
        assert "📊" not in text
