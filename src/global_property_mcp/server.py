# src/global_property_mcp/server.py
"""Global property calculator MCP server"""

import asyncio
import importlib.metadata
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .models.valuation_model import Country, InvestmentResult, Language
from .utils.calculations import compare_countries, compute
from .utils.formatting import (
    country_label,
    format_money,
    format_percent,
    format_summary,
    label,
    sensitivity_matrix,
)
from .utils.normalization import (
    build_valuation_input,
    normalize_country,
    validate_valuation_arguments,
)
from .utils.rate_tables import RateTables, get_rate_tables
from .utils.report import prepare_pro_report

# logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

RESOURCE_PREFIX = "rates://local.host/"

VALUATION_INPUT_SCHEMA: Dict[str, Any] = {
    "country": {
        "type": "string",
        "description": "uk | uae | th | jp (names such as 'Dubai' are accepted)",
    },
    "purpose": {"type": "string", "description": "investment | owner"},
    "price": {"type": "number", "description": "Property price (local currency)"},
    "monthly_rent": {"type": "number", "description": "Monthly rent", "default": 0},
    "agent_fee_percent": {
        "type": "number",
        "description": "Letting agent fee (% of rent, 0-100)",
        "default": 0,
    },
    "mortgage_percent": {
        "type": "number",
        "description": "Loan to value (%, 0-100)",
        "default": 0,
    },
    "apr_percent": {
        "type": "number",
        "description": "Interest rate (%, 0-50)",
        "default": 0,
    },
    "annual_holding_costs": {
        "type": "number",
        "description": "Service charge, insurance, etc. per year",
        "default": 0,
    },
    "other_one_off_costs": {
        "type": "number",
        "description": "Legal, furniture, etc.",
        "default": 0,
    },
    "annual_property_fee": {
        "type": "number",
        "description": "Owner-occupier only: management / property fee per year",
        "default": 0,
    },
    "buyer_residency": {
        "type": "string",
        "description": "UK only: resident | non_resident",
        "default": "resident",
    },
    "home_count": {
        "type": "string",
        "description": "UK only: first | additional",
        "default": "first",
    },
    "lang": {"type": "string", "description": "en | zh", "default": "en"},
}


class PropertyCalculatorMCPServer:
    """Global property calculator MCP server"""

    def __init__(self, tables: Optional[RateTables] = None) -> None:
        self.server = Server(
            "global-property-calculator",
            version=_package_version(),
            instructions=(
                "Purchase taxes, fees, yields and running costs for property "
                "in the UK, UAE, Thailand and Japan."
            ),
        )
        self.tables = tables or get_rate_tables()

        # tools / resources
        self._register_tools()
        self._register_resources()

    def _register_tools(self) -> None:
        """Bind list / call handlers on the Server instance."""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            """Available tools"""
            return [
                Tool(
                    name="calculate_property",
                    description=(
                        "Purchase taxes, fees, financing, yield / cash-on-cash ROI "
                        "(investment) or running costs (owner-occupier)"
                    ),
                    inputSchema={
                        "type": "object",
                        "properties": dict(VALUATION_INPUT_SCHEMA),
                        "required": ["country", "purpose", "price"],
                    },
                ),
                Tool(
                    name="sensitivity_grid",
                    description="Cash-on-cash ROI under rent x APR changes",
                    inputSchema={
                        "type": "object",
                        "properties": dict(VALUATION_INPUT_SCHEMA),
                        "required": ["country", "price"],
                    },
                ),
                Tool(
                    name="compare_countries",
                    description="Run the same numbers across several countries",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            **VALUATION_INPUT_SCHEMA,
                            "countries": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "Countries to compare (default: all)",
                            },
                        },
                        "required": ["purpose", "price"],
                    },
                ),
                Tool(
                    name="prepare_pro_report",
                    description="Validate a Pro Report request and return its payload",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "email": {"type": "string", "description": "Recipient"},
                            "lang": {"type": "string", "default": "en"},
                            "country": VALUATION_INPUT_SCHEMA["country"],
                            "purpose": VALUATION_INPUT_SCHEMA["purpose"],
                            "inputs": {
                                "type": "object",
                                "description": "Same numeric fields as calculate_property",
                            },
                        },
                        "required": ["email", "country", "purpose", "inputs"],
                    },
                ),
            ]

        @self.server.call_tool()
        async def call_tool(
            name: str, arguments: Dict[str, Any]
        ) -> List[TextContent]:  # noqa: D401
            """Tool call entry (MCP handler)"""
            return await self.call_tool(name, arguments)

    async def call_tool(
        self, name: str, arguments: Dict[str, Any]
    ) -> List[TextContent]:
        """Dispatch a tool call; input errors come back as text."""
        try:
            return await self._dispatch_tool(name, arguments)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Tool input/validation error: %s", e)
            return [TextContent(type="text", text=f"Input error: {e}")]
        # unexpected errors propagate

    async def _dispatch_tool(
        self, name: str, arguments: Dict[str, Any]
    ) -> List[TextContent]:
        """Route a tool name to its implementation."""
        if name == "calculate_property":
            return await self._calculate_property(arguments)
        if name == "sensitivity_grid":
            return await self._sensitivity_grid(arguments)
        if name == "compare_countries":
            return await self._compare_countries(arguments)
        if name == "prepare_pro_report":
            return await self._prepare_pro_report(arguments)
        raise ValueError(f"Unknown tool: {name}")

    def _register_resources(self) -> None:
        """Expose the active rate table of each country."""

        @self.server.list_resources()
        async def list_resources() -> List[Resource]:
            resources: List[Resource] = []
            for country in self.tables.countries:
                resources.append(
                    Resource(
                        uri=f"{RESOURCE_PREFIX}{country.value}",  # type: ignore[arg-type]
                        name=f"Rates: {country_label(country)}",
                        description=f"Tax / fee rate table for {country_label(country)}",
                        mimeType="application/json",
                    )
                )
            return resources

        @self.server.read_resource()  # type: ignore[misc]
        async def read_resource(uri: AnyUrl) -> str:  # noqa: D401
            return self._read_rate_resource(str(uri))

    def _read_rate_resource(self, uri: str) -> str:
        """Rate table JSON for ``rates://local.host/<country>``."""
        if not uri.startswith(RESOURCE_PREFIX):
            raise ValueError(f"Unknown resource URI: {uri}")
        country = normalize_country(uri[len(RESOURCE_PREFIX):])
        if country not in self.tables.countries:
            raise ValueError(f"No rate table for: {country.value}")
        return self.tables.for_country(country).model_dump_json(indent=2)

    @staticmethod
    def _language(arguments: Dict[str, Any]) -> Language:
        return Language(str(arguments.get("lang") or Language.EN.value).lower())

    @staticmethod
    def _validation_message(errors: Dict[str, str]) -> List[TextContent]:
        return [TextContent(type="text", text="Input error: " + ", ".join(errors.values()))]

    async def _calculate_property(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Single calculation"""
        errors = validate_valuation_arguments(arguments)
        if errors:
            logger.warning("Rejected calculation input: %s", errors)
            return self._validation_message(errors)

        valuation_input = build_valuation_input(arguments)
        result = compute(valuation_input, self.tables)
        text = format_summary(valuation_input, result, self._language(arguments))
        return [TextContent(type="text", text=text)]

    async def _sensitivity_grid(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """ROI grid only (investment purpose implied)"""
        arguments = {**arguments, "purpose": "investment"}
        errors = validate_valuation_arguments(arguments)
        if errors:
            return self._validation_message(errors)

        lang = self._language(arguments)
        result = compute(build_valuation_input(arguments), self.tables)
        lines = [f"📊 {label('sensitivity', lang)}", label("sensitivity_hint", lang), ""]
        lines.extend(" | ".join(row) for row in sensitivity_matrix(result))
        return [TextContent(type="text", text="\n".join(lines) + "\n")]

    async def _compare_countries(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Same numbers, several countries"""
        raw_countries = arguments.get("countries") or [c.value for c in Country]
        countries = [normalize_country(c) for c in raw_countries]
        if len(countries) < 2:
            return [TextContent(type="text", text="At least two countries are required.")]

        base = {**arguments, "country": countries[0]}
        errors = validate_valuation_arguments(base)
        if errors:
            return self._validation_message(errors)

        lang = self._language(arguments)
        results = compare_countries(build_valuation_input(base), countries, self.tables)
        return [TextContent(type="text", text=self._format_comparison(results, lang))]

    def _format_comparison(self, results: Dict[Country, Any], lang: Language) -> str:
        """Investment: ranked by ROI (desc). Owner: ranked by running cost (asc)."""
        first = next(iter(results.values()))
        investment = isinstance(first, InvestmentResult)
        if investment:
            ranked = sorted(
                results.items(), key=lambda kv: kv[1].cash_on_cash_percent, reverse=True
            )
        else:
            ranked = sorted(
                results.items(), key=lambda kv: kv[1].annual_total_running_costs
            )

        result = "🔍 Country comparison\n\n"
        for i, (country, res) in enumerate(ranked, 1):
            result += f"{i}. {country_label(country, lang)} ({res.currency})\n"
            result += f"   {label('upfront_costs', lang)}: {format_money(res.upfront_costs)}\n"
            if investment:
                result += (
                    f"   {label('cash_on_cash_percent', lang)}: "
                    f"{format_percent(res.cash_on_cash_percent)}\n"
                )
                result += (
                    f"   {label('net_yield_percent', lang)}: "
                    f"{format_percent(res.net_yield_percent)}\n\n"
                )
            else:
                result += (
                    f"   {label('annual_total_running_costs', lang)}: "
                    f"{format_money(res.annual_total_running_costs)}\n\n"
                )
        return result

    async def _prepare_pro_report(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Pro Report payload (rendering / email handled elsewhere)"""
        payload = prepare_pro_report(
            arguments, datetime.now(timezone.utc), tables=self.tables
        )
        return [TextContent(type="text", text=payload.model_dump_json(indent=2))]

    def initialization_options(self) -> InitializationOptions:
        """Handshake options; capabilities follow the registered handlers."""
        return self.server.create_initialization_options()

    async def run(
        self,
        streams: Optional[Tuple[Any, Any]] = None,
        *,
        raise_exceptions: bool = False,
    ) -> None:
        """Serve MCP requests until the client disconnects.

        ``streams`` is a (read, write) pair; stdio is used when omitted.
        """
        logger.info(
            "Serving rate tables for %s",
            ", ".join(c.value for c in self.tables.countries),
        )
        options = self.initialization_options()

        if streams is None:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream, write_stream, options, raise_exceptions=raise_exceptions
                )
        else:
            read_stream, write_stream = streams
            await self.server.run(
                read_stream, write_stream, options, raise_exceptions=raise_exceptions
            )
        logger.info("Client disconnected")


def _package_version() -> str:
    try:
        return importlib.metadata.version("global-property-mcp")
    except importlib.metadata.PackageNotFoundError:
        # running from a source checkout
        return "0.0.0"


async def main() -> None:
    """Serve over stdio with the configured rate tables."""
    await PropertyCalculatorMCPServer().run()


def run() -> None:
    """Console entry point (``global-property-mcp``)."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
