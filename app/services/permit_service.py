# app/services/permit_service.py
"""
Permit issuance: the one multi-entity write in the system.

purchase() validates the request, then in a single transaction:
  1. get-or-create the vehicle for (user, plate)
  2. allocate PMT-/TXN- public identifiers
  3. stamp purchase time and category expiry
  4. insert the permit
  5. reduce the card number to its last 4 digits
  6. insert the completed payment
  7. commit
Any failure rolls the whole unit back; nothing partial is ever committed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    PermitConflictError,
    PermitIssuanceError,
    PermitServiceError,
    PermitValidationError,
)
from app.models.payment import Payment
from app.models.permit import Permit
from app.models.vehicle import Vehicle
from app.schemas.permit import PermitPurchase
from app.services.identifiers import new_permit_id, new_transaction_id
from app.services.identity import AuthenticatedUser
from app.services.payment_service import mask_card, record_payment
from app.services.vehicle_service import get_or_create_vehicle, normalize_plate
from app.utils.logger import get_logger

logger = get_logger(__name__)

CATEGORY_VALIDITY = {
    "semester": relativedelta(months=4),
    "annual": relativedelta(years=1),
}
CENTS = Decimal("0.01")
MAX_PRICE = Decimal("100000000")   # Numeric(10, 2) tops out at 99999999.99


@dataclass(frozen=True)
class PurchaseConfirmation:
    permit_id: str
    transaction_id: str
    full_name: str
    student_id: str
    vehicle_make: str
    license_plate: str
    category: str
    price: Decimal
    purchase_date: datetime
    expiry_date: datetime


@dataclass(frozen=True)
class _ValidatedPurchase:
    full_name: str
    student_id: str
    vehicle_make: str
    license_plate: str
    category: str
    price: Decimal
    card_last4: str


def compute_expiry(category: str, purchased_at: datetime) -> datetime:
    """Calendar arithmetic: +4 months for semester, +1 year for annual."""
    return purchased_at + CATEGORY_VALIDITY[category]


def _validate(request: PermitPurchase) -> _ValidatedPurchase:
    full_name = (request.full_name or "").strip()
    student_id = (request.student_id or "").strip()
    vehicle_make = (request.vehicle_make or "").strip()
    license_plate = normalize_plate(request.license_plate)
    category = (request.category or "").strip()
    card_number = (request.card_number or "").strip()

    if not all([full_name, student_id, vehicle_make, license_plate, category, card_number]):
        raise PermitValidationError("Missing required fields")
    if category not in CATEGORY_VALIDITY:
        raise PermitValidationError("Invalid permit type")

    # Rounded to cents before the range checks, so 0.004 counts as zero
    try:
        price = Decimal(str(request.price))
        if price.is_finite() and abs(price) < MAX_PRICE:
            price = price.quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise PermitValidationError("Price must be greater than zero")
    if not price.is_finite() or price <= 0:
        raise PermitValidationError("Price must be greater than zero")
    if price >= MAX_PRICE:
        raise PermitValidationError("Price exceeds the maximum allowed")

    card_last4 = mask_card(card_number)
    if not card_last4:
        raise PermitValidationError("Invalid card number")

    return _ValidatedPurchase(
        full_name=full_name,
        student_id=student_id,
        vehicle_make=vehicle_make,
        license_plate=license_plate,
        category=category,
        price=price,
        card_last4=card_last4,
    )


def _identifier_taken(db: Session, permit_id: str, transaction_id: str) -> bool:
    permit_hit = db.query(Permit.id).filter(Permit.permit_id == permit_id).first()
    payment_hit = db.query(Payment.id).filter(Payment.transaction_id == transaction_id).first()
    return bool(permit_hit or payment_hit)


def _issue(db: Session, user: AuthenticatedUser, details: _ValidatedPurchase,
           vehicle: Vehicle, purchased_at: datetime, expires_at: datetime):
    """
    Inserts permit + payment inside a SAVEPOINT. A unique-constraint hit on
    a public identifier regenerates both ids, up to IDENTIFIER_MAX_ATTEMPTS.
    """
    for attempt in range(1, settings.IDENTIFIER_MAX_ATTEMPTS + 1):
        permit_id = new_permit_id()
        transaction_id = new_transaction_id()
        try:
            with db.begin_nested():
                permit = Permit(
                    permit_id=permit_id,
                    user_id=user.id,
                    vehicle_id=vehicle.id,
                    full_name=details.full_name,
                    student_id=details.student_id,
                    vehicle_make=details.vehicle_make,
                    license_plate=details.license_plate,
                    category=details.category,
                    price=details.price,
                    purchased_at=purchased_at,
                    expires_at=expires_at,
                )
                db.add(permit)
                db.flush()
                payment = record_payment(
                    db,
                    user_id=user.id,
                    permit=permit,
                    amount=details.price,
                    card_last4=details.card_last4,
                    transaction_id=transaction_id,
                    paid_at=purchased_at,
                )
            return permit, payment
        except IntegrityError:
            if not _identifier_taken(db, permit_id, transaction_id):
                raise
            logger.warning(f"Identifier collision on attempt {attempt} ({permit_id}/{transaction_id})")

    raise PermitConflictError("Could not allocate a unique permit identifier, please retry")


def purchase(db: Session, user: AuthenticatedUser, request: PermitPurchase,
             now: Optional[datetime] = None) -> PurchaseConfirmation:
    """
    Buys a permit for user. All-or-nothing: on any failure the session is
    rolled back and a PermitServiceError is raised.
    """
    details = _validate(request)
    purchased_at = now or datetime.utcnow()
    expires_at = compute_expiry(details.category, purchased_at)

    try:
        vehicle = get_or_create_vehicle(db, user.id, details.license_plate, details.vehicle_make)
        permit, payment = _issue(db, user, details, vehicle, purchased_at, expires_at)
        permit_id, transaction_id = permit.permit_id, payment.transaction_id
        db.commit()
    except PermitServiceError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Permit purchase rolled back for user={user.id}: {e}", exc_info=True)
        raise PermitIssuanceError() from e

    logger.info(
        f"Permit {permit_id} issued | user={user.id} | {details.category} | "
        f"plate={details.license_plate} | txn={transaction_id} | card=****{details.card_last4}"
    )
    return PurchaseConfirmation(
        permit_id=permit_id,
        transaction_id=transaction_id,
        full_name=details.full_name,
        student_id=details.student_id,
        vehicle_make=details.vehicle_make,
        license_plate=details.license_plate,
        category=details.category,
        price=details.price,
        purchase_date=purchased_at,
        expiry_date=expires_at,
    )


def list_permits(db: Session, user: AuthenticatedUser, now: Optional[datetime] = None):
    """Owner's permits, newest purchase first, as (Permit, status) pairs."""
    now = now or datetime.utcnow()
    permits = (
        db.query(Permit)
        .filter(Permit.user_id == user.id)
        .order_by(Permit.purchased_at.desc(), Permit.id.desc())
        .all()
    )
    return [(p, p.status_at(now)) for p in permits]
