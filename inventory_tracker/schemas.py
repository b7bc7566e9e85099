from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel
from decimal import Decimal
from typing import List, Dict, Optional
import datetime

from .validation import Category, Count, Description, ItemName, Password, Price, Sku, UserName


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case in Python; either is accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Auth ---

class RegisterRequest(CamelModel):
    name: UserName
    email: EmailStr
    password: Password

class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""

class UserRead(CamelModel):
    id: str
    name: str
    email: str
    role: str
    created_at: datetime.datetime

class AuthResponse(CamelModel):
    user: UserRead
    token: str


# --- Items ---

class ItemCreate(CamelModel):
    # All optional here; required fields are enforced by the repository on create
    name: Optional[ItemName] = None
    description: Optional[Description] = None
    category: Optional[Category] = None
    quantity: Optional[Count] = None
    price: Optional[Price] = None
    sku: Optional[Sku] = None
    low_stock_threshold: Optional[Count] = None

class ItemUpdate(ItemCreate):
    pass

class ItemRead(CamelModel):
    id: str
    name: str
    description: str
    category: str
    quantity: int
    price: Decimal
    sku: str
    low_stock_threshold: int
    is_low_stock: bool
    owner_id: str
    created_at: datetime.datetime
    updated_at: datetime.datetime

class InventoryStatsRead(CamelModel):
    total_items: int
    total_value: Decimal
    low_stock_items: int
    out_of_stock_items: int
    category_counts: Dict[str, int]


# --- Errors ---

class FieldErrorRead(BaseModel):
    field: str
    message: str

class ErrorResponse(BaseModel):
    detail: str
    code: str
    errors: List[FieldErrorRead] | None = None
