from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# Wire format is camelCase (employmentType, applyLink, ...).
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobEntryCreate(BaseModel):
    title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None
    employment_type: Optional[str] = None
    posted_date: Optional[datetime] = None
    apply_link: Optional[str] = None

    model_config = _CAMEL


class JobEntryUpdate(BaseModel):
    """Allow-listed mutable fields. postedBy / postedDate are not accepted."""

    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    employment_type: Optional[str] = None
    apply_link: Optional[str] = None

    model_config = _CAMEL

    # Omit a field to leave it unchanged; title and company cannot be cleared.
    @field_validator("title", "company")
    @staticmethod
    def _validate_required_text(value: Optional[str]) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value


class JobEntryOut(BaseModel):
    id: int
    title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None
    employment_type: Optional[str] = None
    posted_date: Optional[datetime] = None
    apply_link: Optional[str] = None
    posted_by: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
