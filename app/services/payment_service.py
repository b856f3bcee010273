# app/services/payment_service.py
"""
Payment records for permit purchases.
No processor is contacted: the card is captured, reduced to its last 4
digits, and the payment is written as completed.
"""

import re
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.payment import Payment
from app.models.permit import Permit
from app.services.identity import AuthenticatedUser

PAYMENT_COMPLETED = "completed"


def mask_card(card_number: str) -> str:
    """Last 4 digits after dropping every non-digit character."""
    return re.sub(r"\D", "", card_number or "")[-4:]


def record_payment(db: Session, user_id: int, permit: Permit, amount: Decimal,
                   card_last4: str, transaction_id: str, paid_at: datetime) -> Payment:
    """Adds the payment to the caller's transaction. Flushed, not committed."""
    payment = Payment(
        transaction_id=transaction_id,
        user_id=user_id,
        permit_id=permit.id,
        amount=amount,
        card_last4=card_last4,
        status=PAYMENT_COMPLETED,
        paid_at=paid_at,
    )
    db.add(payment)
    db.flush()
    return payment


def list_payments(db: Session, user: AuthenticatedUser):
    """Owner's payment history, newest first, as (Payment, public permit id) rows."""
    return (
        db.query(Payment, Permit.permit_id)
        .join(Permit, Payment.permit_id == Permit.id)
        .filter(Payment.user_id == user.id)
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
        .all()
    )
