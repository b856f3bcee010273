# app/services/identifiers.py
"""
Public identifier generation for permits, payments and vehicles.
Tokens come from the OS CSPRNG. Uniqueness is still enforced by the unique
constraints on the tables; callers must handle a collision.
"""

import secrets
import string

ALPHABET = string.ascii_uppercase + string.digits

PERMIT_PREFIX = "PMT-"
TRANSACTION_PREFIX = "TXN-"
VEHICLE_PREFIX = "VEH-"


def random_token(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def new_permit_id() -> str:
    """PMT- followed by 8 uppercase alphanumerics."""
    return PERMIT_PREFIX + random_token(8)


def new_transaction_id() -> str:
    """TXN- followed by 12 uppercase alphanumerics."""
    return TRANSACTION_PREFIX + random_token(12)


def new_vehicle_id() -> str:
    return VEHICLE_PREFIX + random_token(8)
