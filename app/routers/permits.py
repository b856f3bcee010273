# app/routers/permits.py
"""Permit purchase and permit listing for the authenticated user."""

import re

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import PermitValidationError
from app.schemas.common import ApiResponse
from app.schemas.permit import PermitOut, PermitPurchase, PurchaseConfirmationOut
from app.services import permit_service
from app.services.identity import AuthenticatedUser, get_current_user

router = APIRouter()


def check_card_number(card_number: str):
    """Form-level check: 16 digits once spaces and dashes are removed."""
    digits = re.sub(r"[\s-]", "", card_number or "")
    if not re.fullmatch(r"\d{16}", digits):
        raise PermitValidationError("Card number must be 16 digits")


@router.post("/permits", response_model=ApiResponse, summary="Purchase a parking permit")
def purchase_permit(body: PermitPurchase,
                    user: AuthenticatedUser = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    check_card_number(body.card_number)
    confirmation = permit_service.purchase(db, user, body)
    data = PurchaseConfirmationOut.model_validate(confirmation)
    return ApiResponse(success=True, message="Permit created successfully",
                       data=data.model_dump(by_alias=True, mode="json"))


@router.get("/permits", response_model=ApiResponse, summary="List my permits")
def list_permits(user: AuthenticatedUser = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    """Newest first. Status is computed against the current time on every call."""
    permits = [
        PermitOut(
            permit_id=p.permit_id,
            full_name=p.full_name,
            student_id=p.student_id,
            vehicle_make=p.vehicle_make,
            license_plate=p.license_plate,
            category=p.category,
            price=p.price,
            purchase_date=p.purchased_at,
            expiry_date=p.expires_at,
            status=status,
        ).model_dump(by_alias=True, mode="json")
        for p, status in permit_service.list_permits(db, user)
    ]
    return ApiResponse(success=True, message="Permits retrieved successfully", data=permits)
