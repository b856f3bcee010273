# app/services/vehicle_service.py
"""
Vehicle registration, lookup and removal, always scoped to the owning user.

get_or_create_vehicle is the building block the permit purchase uses: it
inserts first inside a SAVEPOINT and falls back to reading the existing row
when the (user, plate) unique constraint fires. There is no separate
existence check, so two concurrent purchases for the same plate end up on the
same vehicle row.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import NotFoundError, PermitConflictError, PermitValidationError
from app.models.permit import Permit
from app.models.vehicle import Vehicle
from app.services.identifiers import new_vehicle_id
from app.services.identity import AuthenticatedUser
from app.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_plate(license_plate: Optional[str]) -> str:
    return (license_plate or "").strip().upper()


def find_vehicle_by_plate(db: Session, user_id: int, license_plate: str):
    """Vehicle owned by user_id with this (already normalized) plate, or None."""
    return (
        db.query(Vehicle)
        .filter(Vehicle.user_id == user_id, Vehicle.license_plate == license_plate)
        .first()
    )


def _insert_vehicle(db: Session, vehicle: Vehicle) -> bool:
    """Insert inside a SAVEPOINT. False if a unique constraint rejected it."""
    try:
        with db.begin_nested():
            db.add(vehicle)
    except IntegrityError:
        return False
    return True


def get_or_create_vehicle(db: Session, user_id: int, license_plate: str, make: str) -> Vehicle:
    """
    Returns the user's vehicle for license_plate, creating it if needed.
    Runs inside the caller's transaction and never commits.
    An existing vehicle is reused unchanged.
    """
    for _ in range(settings.IDENTIFIER_MAX_ATTEMPTS):
        vehicle = Vehicle(
            vehicle_id=new_vehicle_id(),
            user_id=user_id,
            make=make,
            license_plate=license_plate,
            registered_at=datetime.utcnow(),
        )
        if _insert_vehicle(db, vehicle):
            logger.info(f"Vehicle {vehicle.vehicle_id} created for user={user_id}")
            return vehicle

        existing = find_vehicle_by_plate(db, user_id, license_plate)
        if existing:
            logger.debug(f"Reusing vehicle {existing.vehicle_id} for user={user_id}")
            return existing
        # Neither plate nor anything else matched: the public id collided
        logger.warning("Vehicle id collision, regenerating")

    raise PermitConflictError("Could not allocate a vehicle identifier")


def add_vehicle(db: Session, user: AuthenticatedUser, make: str, license_plate: str,
                model: Optional[str] = None, year: Optional[int] = None,
                color: Optional[str] = None) -> Vehicle:
    """Explicit registration from the dashboard. Duplicate plates are rejected."""
    make = (make or "").strip()
    plate = normalize_plate(license_plate)
    if not make or not plate:
        raise PermitValidationError("Make and license plate are required")

    for _ in range(settings.IDENTIFIER_MAX_ATTEMPTS):
        vehicle = Vehicle(
            vehicle_id=new_vehicle_id(),
            user_id=user.id,
            make=make,
            model=(model or "").strip() or None,
            year=year or None,
            color=(color or "").strip() or None,
            license_plate=plate,
            registered_at=datetime.utcnow(),
        )
        if _insert_vehicle(db, vehicle):
            db.commit()
            logger.info(f"Vehicle {vehicle.vehicle_id} registered by user={user.id}")
            return vehicle
        if find_vehicle_by_plate(db, user.id, plate):
            db.rollback()
            raise PermitConflictError("This license plate is already registered")

    db.rollback()
    raise PermitConflictError("Could not allocate a vehicle identifier")


def list_vehicles(db: Session, user: AuthenticatedUser):
    """Owner's vehicles, newest registration first."""
    return (
        db.query(Vehicle)
        .filter(Vehicle.user_id == user.id)
        .order_by(Vehicle.registered_at.desc(), Vehicle.id.desc())
        .all()
    )


def _has_permits(db: Session, vehicle: Vehicle) -> bool:
    return db.query(Permit.id).filter(Permit.vehicle_id == vehicle.id).first() is not None


def remove_vehicle(db: Session, user: AuthenticatedUser, vehicle_id: str):
    """
    Deletes the caller's vehicle. Unknown ids and ids owned by someone else
    get the same NotFoundError. Vehicles with permits on record are kept.
    """
    vehicle = (
        db.query(Vehicle)
        .filter(Vehicle.vehicle_id == vehicle_id, Vehicle.user_id == user.id)
        .first()
    )
    if not vehicle:
        raise NotFoundError("Vehicle not found")

    if _has_permits(db, vehicle):
        raise PermitConflictError("Vehicle has permits on record")

    # A purchase committed after the check above trips the permits foreign key
    try:
        db.delete(vehicle)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise PermitConflictError("Vehicle has permits on record")
    logger.info(f"Vehicle {vehicle_id} removed by user={user.id}")
