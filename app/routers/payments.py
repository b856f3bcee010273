# app/routers/payments.py
"""Payment history for the authenticated user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.payment import PaymentOut
from app.services.identity import AuthenticatedUser, get_current_user
from app.services.payment_service import list_payments

router = APIRouter()


@router.get("/payments", response_model=ApiResponse, summary="List my payments")
def payment_history(user: AuthenticatedUser = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    payments = [
        PaymentOut(
            transaction_id=payment.transaction_id,
            permit_id=permit_id,
            amount=payment.amount,
            card_last4=payment.card_last4,
            status=payment.status,
            payment_date=payment.paid_at,
        ).model_dump(by_alias=True, mode="json")
        for payment, permit_id in list_payments(db, user)
    ]
    return ApiResponse(success=True, message="Payment history retrieved successfully", data=payments)
