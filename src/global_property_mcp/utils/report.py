# src/global_property_mcp/utils/report.py
"""Pro Report payload assembly.

Sequence: validate request -> compute -> build payload -> (render -> send).
Rendering and delivery are external collaborators described by the
``ReportRenderer`` / ``ReportDelivery`` protocols; this module only calls them
when they are supplied.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Union

from ..models.report_model import (
    ProReportRequest,
    ReportMetadata,
    ReportPayload,
    ReportSection,
)
from ..models.valuation_model import (
    InvestmentResult,
    Language,
    OwnerOccupiedResult,
    ValuationInput,
)
from .calculations import compute
from .formatting import (
    country_label,
    input_rows,
    label,
    result_rows,
    sensitivity_matrix,
)
from .normalization import build_valuation_input, validate_valuation_arguments
from .rate_tables import RateTables, get_rate_tables

logger = logging.getLogger(__name__)

DEFAULT_BRAND_NAME = "MyGPC"
DEFAULT_BRAND_WEBSITE = "mygpc.co"


class ReportRenderer(Protocol):  # pylint: disable=too-few-public-methods
    """Turns a payload into a binary document (e.g. PDF)."""

    def render(self, payload: ReportPayload) -> bytes:
        """Render the document."""


class ReportDelivery(Protocol):  # pylint: disable=too-few-public-methods
    """Sends a binary document as an email attachment."""

    def send(
        self, to: str, subject: str, body: str, filename: str, content: bytes
    ) -> None:
        """Deliver the attachment."""


class ReportError(RuntimeError):
    """Rendering or delivery failed (wraps the collaborator error)."""


def _email_text(lang: Language, brand_name: str) -> Dict[str, str]:
    if lang == Language.ZH:
        return {
            "subject": f"你的 {brand_name} 专业版测算报告（PDF）",
            "body": (
                f"你好！\n\n附件是你的 {brand_name} 专业版测算报告（PDF）。\n\n"
                f"提示：本报告为预估结果，仅供参考。\n\n— {brand_name}"
            ),
            "filename": f"{brand_name}-专业版报告.pdf",
        }
    return {
        "subject": f"Your {brand_name} Pro Report (PDF)",
        "body": (
            f"Hi!\n\nAttached is your {brand_name} Pro Report (PDF).\n\n"
            f"Note: estimates only.\n\n— {brand_name}"
        ),
        "filename": f"{brand_name}-Pro-Report.pdf",
    }


def build_report_metadata(
    valuation_input: ValuationInput,
    generated_at: datetime,
    lang: Language = Language.EN,
    tables: Optional[RateTables] = None,
    brand_name: str = DEFAULT_BRAND_NAME,
    brand_website: str = DEFAULT_BRAND_WEBSITE,
) -> ReportMetadata:
    """Metadata block; the timestamp always comes from the caller."""
    tables = tables or get_rate_tables()
    return ReportMetadata(
        country_label=country_label(valuation_input.country, lang),
        currency=tables.currency_for(valuation_input.country),
        generated_at=generated_at,
        brand_name=brand_name,
        brand_website=brand_website,
    )


def build_report_payload(
    valuation_input: ValuationInput,
    result: Union[InvestmentResult, OwnerOccupiedResult],
    metadata: ReportMetadata,
    lang: Language = Language.EN,
) -> ReportPayload:
    """
    Assemble the report document

    Sections in order: cover, assumptions, outputs, sensitivity (investment
    results carrying a grid), disclaimer.
    """
    cover = ReportSection(
        key="cover",
        title=label("title", lang),
        rows=(
            (label("country", lang), metadata.country_label),
            (label("currency", lang), metadata.currency),
            (label("purpose", lang), label(valuation_input.purpose.value, lang)),
            (label("generated_at", lang), metadata.generated_at.isoformat()),
            (metadata.brand_name, metadata.brand_website),
        ),
    )
    sections = [
        cover,
        ReportSection(
            key="assumptions",
            title=label("assumptions", lang),
            rows=tuple(input_rows(valuation_input, lang)),
        ),
        ReportSection(
            key="outputs",
            title=label("outputs", lang),
            rows=tuple(result_rows(result, lang)),
        ),
    ]
    if isinstance(result, InvestmentResult) and result.sensitivity:
        sections.append(
            ReportSection(
                key="sensitivity",
                title=label("sensitivity", lang),
                matrix=tuple(tuple(row) for row in sensitivity_matrix(result)),
                note=label("sensitivity_hint", lang),
            )
        )
    sections.append(
        ReportSection(key="disclaimer", title="", note=label("disclaimer", lang))
    )

    text = _email_text(lang, metadata.brand_name)
    return ReportPayload(
        lang=lang,
        metadata=metadata,
        sections=tuple(sections),
        filename=text["filename"],
        email_subject=text["subject"],
        email_body=text["body"],
    )


def prepare_pro_report(
    request: Union[ProReportRequest, Dict[str, Any]],
    generated_at: datetime,
    tables: Optional[RateTables] = None,
    renderer: Optional[ReportRenderer] = None,
    delivery: Optional[ReportDelivery] = None,
) -> ReportPayload:
    """
    Validate a Pro Report request and build its payload

    Raises:
        ValueError: invalid address or calculator inputs
        ReportError: renderer / delivery failure (when supplied)
    """
    if not isinstance(request, ProReportRequest):
        request = ProReportRequest.model_validate(request)

    arguments = request.to_arguments()
    errors = validate_valuation_arguments(arguments)
    if errors:
        raise ValueError("; ".join(errors.values()))

    tables = tables or get_rate_tables()
    valuation_input = build_valuation_input(arguments)
    result = compute(valuation_input, tables)
    metadata = build_report_metadata(
        valuation_input, generated_at, request.lang, tables
    )
    payload = build_report_payload(valuation_input, result, metadata, request.lang)

    if renderer is None:
        return payload

    try:
        document = renderer.render(payload)
        if delivery is not None:
            delivery.send(
                request.email,
                payload.email_subject,
                payload.email_body,
                payload.filename,
                document,
            )
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Pro report generation failed: %s", e)
        raise ReportError(f"Failed to generate or send report: {e}") from e

    if delivery is not None:
        logger.info("Pro report sent to %s", request.email)
    else:
        logger.info("Pro report rendered (%d bytes)", len(document))
    return payload
