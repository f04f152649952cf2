"""Pydantic schemas for submitted document descriptors."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentDescriptor(BaseModel):
    """
    Metadata of one submitted document.

    Only metadata is inspected; document contents are never read.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    type: Optional[str] = None
    name: Optional[str] = None
    size: Optional[int] = Field(None, ge=0, description="Size in bytes")
    expiry_date: Optional[date] = None
