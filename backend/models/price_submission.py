from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from config.constants import MAX_NOTES_LENGTH
from models.market import OBJECT_ID_PATTERN


class Unit(str, Enum):
    KG = "kg"
    LB = "lb"
    OZ = "oz"
    G = "g"
    PIECE = "piece"
    DOZEN = "dozen"
    LITER = "liter"
    GALLON = "gallon"
    BUNCH = "bunch"
    BAG = "bag"
    BOX = "box"
    OTHER = "other"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Mongo hands back naive UTC datetimes; store the same shape
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class PriceSubmissionCreate(BaseModel):
    """
    Payload for a new price observation.

    Status and verification fields are not part of the payload; anything
    the client sends for them is dropped during parsing.
    """
    product: str = Field(..., pattern=OBJECT_ID_PATTERN)
    market: str = Field(..., pattern=OBJECT_ID_PATTERN)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    unit: Unit = Unit.PIECE
    date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return _strip(v)

    @field_validator("date")
    @classmethod
    def normalise_date(cls, v):
        return to_naive_utc(v)


class PriceSubmissionUpdate(BaseModel):
    product: Optional[str] = Field(None, pattern=OBJECT_ID_PATTERN)
    market: Optional[str] = Field(None, pattern=OBJECT_ID_PATTERN)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    unit: Optional[Unit] = None
    date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return _strip(v)

    @field_validator("date")
    @classmethod
    def normalise_date(cls, v):
        return to_naive_utc(v)


class RejectSubmission(BaseModel):
    reason: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v):
        return _strip(v) or None
