"""Pydantic models for record API requests.

Record bodies are free-form: any field not declared here is carried
through as record data.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateRecordRequest(BaseModel):
    """Request model for creating a record.

    The deepest ancestor reference given names the parent. Shallower
    references are optional and copied from the parent when omitted.
    """

    model_config = ConfigDict(extra="allow")

    customer_id: str | None = Field(default=None, description="Customer ID")
    site_id: str | None = Field(default=None, description="Site ID")
    building_id: str | None = Field(default=None, description="Building ID")
    floor_id: str | None = Field(default=None, description="Floor ID")

    def to_payload(self) -> dict[str, Any]:
        """Flatten declared references and extra fields into one payload."""
        return self.model_dump()


class UpdateRecordRequest(BaseModel):
    """Request model for updating a record.

    ``version`` is the version the client last read. It is only consulted
    when the request carries no ``If-Match`` header.
    """

    model_config = ConfigDict(extra="allow")

    version: int | None = Field(
        default=None, description="Version the client last read"
    )

    @property
    def changes(self) -> dict[str, Any]:
        return dict(self.model_extra or {})
