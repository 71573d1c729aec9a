"""Pro Report request / payload models.

The payload is what a document renderer consumes; rendering and email
delivery are done by external collaborators.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.normalization import normalize_country, normalize_purpose
from .valuation_model import Country, Language, Purpose

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ProReportRequest(BaseModel):
    """Incoming Pro Report request (recipient + calculator inputs)"""

    model_config = ConfigDict(frozen=True)

    email: str = Field(..., description="Recipient address")
    lang: Language = Field(default=Language.EN)
    country: Country
    purpose: Purpose
    inputs: Dict[str, Any] = Field(
        ..., description="Calculator inputs (same keys as calculate_property)"
    )

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError(f"Invalid email address: {value!r}")
        return value

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: Any) -> Country:
        return normalize_country(value)

    @field_validator("purpose", mode="before")
    @classmethod
    def _normalize_purpose(cls, value: Any) -> Purpose:
        return normalize_purpose(value)

    def to_arguments(self) -> Dict[str, Any]:
        """Calculator arguments (inputs plus country / purpose)."""
        return {**self.inputs, "country": self.country, "purpose": self.purpose}


class ReportMetadata(BaseModel):
    """Static report metadata supplied by the caller"""

    model_config = ConfigDict(frozen=True)

    country_label: str
    currency: str
    generated_at: datetime
    brand_name: str = "MyGPC"
    brand_website: str = "mygpc.co"


class ReportSection(BaseModel):
    """One report section: title plus (label, value) rows or a matrix"""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    rows: Tuple[Tuple[str, str], ...] = ()
    matrix: Tuple[Tuple[str, ...], ...] = ()
    note: Optional[str] = None


class ReportPayload(BaseModel):
    """Everything a renderer needs to lay out the document"""

    model_config = ConfigDict(frozen=True)

    lang: Language
    metadata: ReportMetadata
    sections: Tuple[ReportSection, ...]
    filename: str
    email_subject: str
    email_body: str

    def section(self, key: str) -> Optional[ReportSection]:
        """Section by key, None when absent."""
        for sec in self.sections:
            if sec.key == key:
                return sec
        return None

    @property
    def section_keys(self) -> List[str]:
        """Section keys in document order"""
        return [sec.key for sec in self.sections]
