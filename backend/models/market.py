import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from enum import Enum

from config.constants import (
    DEFAULT_MARKET_COUNTRY,
    DEFAULT_MARKET_IMAGE,
    DEFAULT_OPERATING_HOURS,
)

PHONE_PATTERN = r"^[\d\s\-\+\(\)]+$"
OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


class MarketType(str, Enum):
    FARMERS_MARKET = "farmers-market"
    SUPERMARKET = "supermarket"
    CONVENIENCE_STORE = "convenience-store"
    SPECIALTY_STORE = "specialty-store"
    WHOLESALE = "wholesale"
    OTHER = "other"


# -----------------------
# NESTED DOCUMENTS
# -----------------------

class Address(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1, description="Region")
    zip_code: Optional[str] = None
    country: str = DEFAULT_MARKET_COUNTRY

    @field_validator("street", "city", "state", "zip_code", "country", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class Contact(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class OperatingHours(BaseModel):
    monday: str = DEFAULT_OPERATING_HOURS
    tuesday: str = DEFAULT_OPERATING_HOURS
    wednesday: str = DEFAULT_OPERATING_HOURS
    thursday: str = DEFAULT_OPERATING_HOURS
    friday: str = DEFAULT_OPERATING_HOURS
    saturday: str = DEFAULT_OPERATING_HOURS
    sunday: str = DEFAULT_OPERATING_HOURS


# -----------------------
# REQUEST PAYLOADS
# -----------------------

class MarketCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    address: Address
    contact: Contact
    operating_hours: OperatingHours = OperatingHours()
    image: str = DEFAULT_MARKET_IMAGE
    images: List[str] = []
    type: MarketType = MarketType.OTHER
    products: List[str] = []

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("products")
    @classmethod
    def check_product_ids(cls, v: List[str]) -> List[str]:
        for pid in v:
            if not _is_object_id(pid):
                raise ValueError(f"Invalid product id: {pid}")
        # set semantics, first occurrence wins
        return list(dict.fromkeys(v))


class MarketUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    address: Optional[Address] = None
    contact: Optional[Contact] = None
    operating_hours: Optional[OperatingHours] = None
    image: Optional[str] = None
    images: Optional[List[str]] = None
    type: Optional[MarketType] = None
    is_active: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    num_reviews: Optional[int] = Field(None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class MarketProductAdd(BaseModel):
    product_id: str = Field(..., pattern=OBJECT_ID_PATTERN)


def _is_object_id(value: str) -> bool:
    return bool(re.match(OBJECT_ID_PATTERN, value or ""))
