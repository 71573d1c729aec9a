"""Free-form input normalization (form / tool boundary).

Loosely typed values from the form or tool arguments are turned into the
strict enums / floats of ``ValuationInput`` here, before the engine runs.
"""

import math
import re
from typing import Any, Dict

from ..models.valuation_model import (
    BuyerResidency,
    Country,
    HomeCount,
    Purpose,
    ValuationInput,
)

_NON_NUMERIC = re.compile(r"[^\d.]")

_COUNTRY_ALIASES = {
    Country.UK: ("uk", "gb", "united kingdom", "england", "英国"),
    Country.UAE: ("uae", "dubai", "united arab emirates", "阿联酋", "迪拜"),
    Country.THAILAND: ("th", "thailand", "泰国"),
    Country.JAPAN: ("jp", "japan", "日本"),
}

_PURPOSE_ALIASES = {
    Purpose.INVESTMENT: ("investment", "invest", "投资"),
    Purpose.OWNER_OCCUPIED: (
        "owner",
        "owner-occupied",
        "owner_occupied",
        "selfuse",
        "self-use",
        "自住",
    ),
}

# non-resident first: "resident" is a substring of it
_RESIDENCY_ALIASES = {
    BuyerResidency.NON_RESIDENT: (
        "non_resident",
        "nonresident",
        "non-resident",
        "non resident",
        "overseas",
        "海外买家",
    ),
    BuyerResidency.RESIDENT: ("resident", "uk resident", "本地买家"),
}

_HOME_COUNT_ALIASES = {
    HomeCount.FIRST: ("first", "first home", "首套"),
    HomeCount.ADDITIONAL: ("additional", "additional home", "second", "二套"),
}


def parse_number(value: Any) -> float:
    """
    Parse a loosely formatted number

    "420,000" / "£1,250.50" / 420000 -> float. Empty or unparsable text and
    non-finite numbers give 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    cleaned = _NON_NUMERIC.sub("", str(value).replace(",", ""))
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        # e.g. "1.2.3"
        return 0.0
    return number if math.isfinite(number) else 0.0


def _match_alias(value: Any, aliases: Dict[Any, tuple], kind: str) -> Any:
    text = str(value if value is not None else "").strip().lower()
    for member, names in aliases.items():
        if text == member.value or text in names:
            return member
    for member, names in aliases.items():
        # substring match, skipping short ascii codes ("uk" in "ukraine")
        if any(
            name in text for name in names if len(name) > 3 or not name.isascii()
        ):
            return member
    raise ValueError(f"Unknown {kind}: {value!r}")


def normalize_country(value: Any) -> Country:
    """Map a country code / name (EN or ZH) to ``Country``."""
    if isinstance(value, Country):
        return value
    return _match_alias(value, _COUNTRY_ALIASES, "country")


def normalize_purpose(value: Any) -> Purpose:
    """Map a purpose label to ``Purpose``."""
    if isinstance(value, Purpose):
        return value
    return _match_alias(value, _PURPOSE_ALIASES, "purpose")


def normalize_residency(value: Any) -> BuyerResidency:
    """Map a residency label to ``BuyerResidency``."""
    if isinstance(value, BuyerResidency):
        return value
    return _match_alias(value, _RESIDENCY_ALIASES, "buyer residency")


def normalize_home_count(value: Any) -> HomeCount:
    """Map a home-count label to ``HomeCount``."""
    if isinstance(value, HomeCount):
        return value
    return _match_alias(value, _HOME_COUNT_ALIASES, "home count")


def build_valuation_input(arguments: Dict[str, Any]) -> ValuationInput:
    """
    Build a ``ValuationInput`` from loosely typed arguments

    ``country``, ``purpose`` and ``price`` are required (KeyError otherwise);
    numeric fields accept formatted text. UK buyer fields default to a
    resident first-time buyer.
    """
    return ValuationInput(
        country=normalize_country(arguments["country"]),
        purpose=normalize_purpose(arguments["purpose"]),
        price=parse_number(arguments["price"]),
        monthly_rent=parse_number(arguments.get("monthly_rent")),
        agent_fee_percent=parse_number(arguments.get("agent_fee_percent")),
        mortgage_percent=parse_number(arguments.get("mortgage_percent")),
        apr_percent=parse_number(arguments.get("apr_percent")),
        annual_holding_costs=parse_number(arguments.get("annual_holding_costs")),
        other_one_off_costs=parse_number(arguments.get("other_one_off_costs")),
        annual_property_fee=parse_number(arguments.get("annual_property_fee")),
        buyer_residency=normalize_residency(
            arguments.get("buyer_residency") or BuyerResidency.RESIDENT
        ),
        home_count=normalize_home_count(arguments.get("home_count") or HomeCount.FIRST),
    )


def validate_valuation_arguments(arguments: Dict[str, Any]) -> Dict[str, str]:
    """
    Boundary validation of tool / form arguments

    Returns:
        Dict[str, str]: field -> error message (empty when valid)
    """
    errors: Dict[str, str] = {}

    for field in ("country", "purpose", "price"):
        if arguments.get(field) in (None, ""):
            errors[field] = f"{field} is required"

    if "price" not in errors and parse_number(arguments["price"]) <= 0:
        errors["price"] = "price must be greater than 0"

    if "country" not in errors:
        try:
            normalize_country(arguments["country"])
        except ValueError as e:
            errors["country"] = str(e)

    if "purpose" not in errors:
        try:
            normalize_purpose(arguments["purpose"])
        except ValueError as e:
            errors["purpose"] = str(e)

    return errors
