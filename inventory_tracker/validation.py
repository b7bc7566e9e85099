"""
Field validation for users and items.

The rules live in pydantic models; these functions never touch the database.
They take plain values and return a list of ``FieldError``. An empty list
means the input is acceptable.
"""

from decimal import Decimal, InvalidOperation
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, ValidationError as PydanticValidationError, condecimal, conint, constr

from .errors import FieldError

CATEGORIES = ("Electronics", "Clothing", "Food", "Furniture", "Books", "Toys", "Other")
DEFAULT_LOW_STOCK_THRESHOLD = 10

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
SKU_MAX_LENGTH = 64
PRICE_MAX = Decimal("9999999999.99")  # Numeric(12, 2)
COUNT_MAX = 2**31 - 1  # Integer column
PASSWORD_MIN_LENGTH = 6
USER_NAME_MAX_LENGTH = 100

ITEM_FIELDS = ("name", "description", "category", "quantity", "price", "sku", "low_stock_threshold")
REQUIRED_ITEM_FIELDS = ("name", "category", "quantity", "price")

# Shared with the request schemas
Category = Literal["Electronics", "Clothing", "Food", "Furniture", "Books", "Toys", "Other"]
ItemName = constr(strip_whitespace=True, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
Description = constr(strip_whitespace=True, max_length=DESCRIPTION_MAX_LENGTH)
Sku = constr(strip_whitespace=True, max_length=SKU_MAX_LENGTH)
Count = conint(strict=True, ge=0, le=COUNT_MAX)
Price = condecimal(ge=0, le=PRICE_MAX, max_digits=12, decimal_places=2)
UserName = constr(strip_whitespace=True, min_length=1, max_length=USER_NAME_MAX_LENGTH)
Password = constr(min_length=PASSWORD_MIN_LENGTH)

# Prices reach the models already converted by normalize_item_fields
_StrictPrice = condecimal(strict=True, ge=0, le=PRICE_MAX, max_digits=12, decimal_places=2)


class Registration(BaseModel):
    name: UserName
    email: EmailStr
    password: Password


class ItemFields(BaseModel):
    """A complete item, as accepted on create."""
    name: ItemName
    description: Description = ""
    category: Category
    quantity: Count
    price: _StrictPrice
    sku: Optional[Sku] = None
    low_stock_threshold: Optional[Count] = None


class ItemChanges(BaseModel):
    """Any subset of item fields, as accepted on update."""
    name: Optional[ItemName] = None
    description: Optional[Description] = None
    category: Optional[Category] = None
    quantity: Optional[Count] = None
    price: Optional[_StrictPrice] = None
    sku: Optional[Sku] = None
    low_stock_threshold: Optional[Count] = None


def field_errors(errors: list[dict]) -> list[FieldError]:
    """Maps pydantic error dicts (model or request validation) to FieldErrors."""
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        message = err.get("msg", "Invalid value")
        if err.get("type") == "literal_error" and loc and loc[0] == "category":
            message = f"{err.get('input')} is not a valid category"
        result.append(FieldError(field, message))
    return result


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(name, email, password) -> list[FieldError]:
    data = {
        "name": name,
        "email": email.strip() if isinstance(email, str) else email,
        "password": password,
    }
    try:
        Registration.model_validate(data)
    except PydanticValidationError as e:
        return field_errors(e.errors())
    return []


def to_decimal(value):
    """Returns ``value`` as a Decimal, or None when it is not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so floats keep their shortest repr (0.1 -> "0.1")
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def normalize_item_fields(fields: dict) -> dict:
    """Keeps known item keys only, trims strings and converts price to Decimal."""
    cleaned = {}
    for key in ITEM_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if isinstance(value, str) and key != "price":
            value = value.strip()
        if key == "price":
            converted = to_decimal(value)
            value = converted if converted is not None else value
        if key == "description" and value is None:
            value = ""
        cleaned[key] = value
    return cleaned


def validate_item_fields(fields: dict, partial: bool = False) -> list[FieldError]:
    """
    Checks item fields against the item constraints.

    With ``partial=True`` (updates) only the keys present are checked, and a
    present key may not be null. Expects the output of normalize_item_fields.
    """
    model = ItemChanges if partial else ItemFields
    try:
        model.model_validate(fields)
    except PydanticValidationError as e:
        errors = field_errors(e.errors())
    else:
        errors = []

    if partial:
        for key in REQUIRED_ITEM_FIELDS + ("low_stock_threshold",):
            if key in fields and fields[key] is None:
                errors.append(FieldError(key, "This field cannot be empty"))
        # Blank on create means "derive one"; an update has to name a SKU
        if "sku" in fields and not fields["sku"]:
            errors.append(FieldError("sku", "SKU cannot be empty"))

    return errors
