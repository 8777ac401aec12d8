from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from enum import Enum

from config.constants import DEFAULT_PRODUCT_IMAGE


class Category(str, Enum):
    VEGETABLES = "Vegetables"
    FRUITS = "Fruits"
    GRAINS = "Grains"
    MEAT = "Meat"
    DAIRY = "Dairy"
    SEAFOOD = "Seafood"
    SPICES = "Spices"
    OTHER = "Other"


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: Category
    stock: int = Field(0, ge=0)

    image: str = DEFAULT_PRODUCT_IMAGE
    images: List[str] = []
    brand: Optional[str] = Field(None, max_length=50)

    rating: float = Field(0, ge=0, le=5)
    num_reviews: int = Field(0, ge=0)
    is_available: bool = True

    @field_validator("name", "brand", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[Category] = None
    stock: Optional[int] = Field(None, ge=0)

    image: Optional[str] = None
    images: Optional[List[str]] = None
    brand: Optional[str] = Field(None, max_length=50)

    rating: Optional[float] = Field(None, ge=0, le=5)
    num_reviews: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None

    @field_validator("name", "brand", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class StockUpdate(BaseModel):
    # signed delta; the stored stock never drops below zero
    quantity: int
