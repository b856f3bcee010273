# app/schemas/payment.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime


class PaymentOut(BaseModel):
    transaction_id: str
    permit_id: str        # public PMT- id, not the row id
    amount: float
    card_last4: str
    status: str
    payment_date: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
