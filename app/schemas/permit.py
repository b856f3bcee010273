# app/schemas/permit.py
from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from decimal import Decimal
from typing import Optional


class PermitPurchase(BaseModel):
    """Inbound purchase form. Text fields are trimmed and checked by the service."""
    full_name: str = ""
    student_id: str = ""
    vehicle_make: str = ""
    license_plate: str = ""
    category: str = Field(default="", validation_alias=AliasChoices("category", "tagType"))  # semester | annual
    price: Decimal = Decimal("0")
    card_number: str = ""
    # Write-once card fields, accepted and never stored
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    cardholder_name: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PurchaseConfirmationOut(BaseModel):
    permit_id: str
    transaction_id: str
    full_name: str
    student_id: str
    vehicle_make: str
    license_plate: str
    category: str
    price: float
    purchase_date: datetime
    expiry_date: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class PermitOut(BaseModel):
    permit_id: str
    full_name: str
    student_id: str
    vehicle_make: str
    license_plate: str
    category: str
    price: float
    purchase_date: datetime
    expiry_date: datetime
    status: str          # active | expired, derived at read time

    class Config:
        alias_generator = to_camel
        populate_by_name = True
