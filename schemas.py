"""
Database Schemas

Each Pydantic model represents a collection in MongoDB.
Model name lowercased is the collection name.
"""

from datetime import datetime
from typing import Annotated, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, Field

DEFAULT_SIZES = ["S", "M", "L", "XL", "XXL"]

# {item_id: {size: quantity}}
CartState = Dict[str, Dict[str, int]]


def check_email(value: str) -> str:
    """Validate the address format but keep the string exactly as given."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc))
    return value


# Emails match exactly, so EmailStr's normalized form is never stored
Email = Annotated[str, AfterValidator(check_email)]


class User(BaseModel):
    name: str = Field(..., description="Display name")
    email: Email = Field(..., description="Unique, matched exactly")
    password_hash: str = Field(..., description="BCrypt hashed password")
    cart_data: CartState = Field(default_factory=dict, description="Sparse item -> size -> quantity")


class Product(BaseModel):
    id: Optional[int] = None
    name: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1, description="Image filename")
    category: str = Field(..., min_length=1)
    new_price: float = Field(..., ge=0, description="Current price")
    old_price: float = Field(..., ge=0, description="Original price")
    description: str = Field(..., min_length=1)
    available: bool = True
    sizes: List[str] = Field(default_factory=lambda: list(DEFAULT_SIZES))
    date: Optional[datetime] = None


class Order(BaseModel):
    payment_id: str = Field(..., min_length=1, description="Payment provider transaction id")
    address: str = Field(..., min_length=1, description="Shipping address")
    user_id: Optional[str] = None
