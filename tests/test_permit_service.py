# tests/test_permit_service.py
"""Unit tests for permit issuance: validation, expiry, masking, atomicity, retries."""

import re
import threading
import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from conftest import make_purchase, row_count
from app.database import SessionLocal
from app.exceptions import PermitConflictError, PermitIssuanceError, PermitValidationError
from app.models.payment import Payment
from app.models.permit import Permit
from app.models.vehicle import Vehicle
from app.services import vehicle_service
from app.services.permit_service import compute_expiry, list_permits, purchase
from app.services.identity import AuthenticatedUser

USER = AuthenticatedUser(id=1, email="alice@mcneese.edu")
PURCHASED_AT = datetime(2026, 1, 15, 9, 30, 0)


class TestValidation:
    @pytest.mark.parametrize("field", ["full_name", "student_id", "vehicle_make",
                                       "license_plate", "card_number"])
    def test_blank_required_field_rejected(self, field):
        db = MagicMock()
        with pytest.raises(PermitValidationError, match="Missing required fields"):
            purchase(db, USER, make_purchase(**{field: "   "}))
        db.add.assert_not_called()
        db.begin_nested.assert_not_called()
        db.commit.assert_not_called()

    def test_unknown_category_rejected(self):
        db = MagicMock()
        with pytest.raises(PermitValidationError, match="Invalid permit type"):
            purchase(db, USER, make_purchase(category="weekly"))
        db.add.assert_not_called()

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5.00"), Decimal("0.004")])
    def test_non_positive_price_rejected(self, price):
        db = MagicMock()
        with pytest.raises(PermitValidationError, match="greater than zero"):
            purchase(db, USER, make_purchase(price=price))
        db.add.assert_not_called()

    @pytest.mark.parametrize("price", [Decimal("1e30"), Decimal("100000000"),
                                       Decimal("99999999.996")])
    def test_price_beyond_column_range_rejected(self, price):
        db = MagicMock()
        with pytest.raises(PermitValidationError, match="exceeds the maximum"):
            purchase(db, USER, make_purchase(price=price))
        db.add.assert_not_called()

    def test_price_rounded_to_cents(self, db, users):
        alice, _ = users
        result = purchase(db, alice, make_purchase(price=Decimal("49.999")))
        assert result.price == Decimal("50.00")
        assert db.query(Payment).one().amount == Decimal("50.00")

    def test_card_without_digits_rejected(self):
        db = MagicMock()
        with pytest.raises(PermitValidationError, match="Invalid card number"):
            purchase(db, USER, make_purchase(card_number="----"))
        db.add.assert_not_called()


class TestExpiry:
    def test_semester_is_four_calendar_months(self):
        assert compute_expiry("semester", PURCHASED_AT) == datetime(2026, 5, 15, 9, 30, 0)

    def test_annual_is_one_calendar_year(self):
        assert compute_expiry("annual", PURCHASED_AT) == datetime(2027, 1, 15, 9, 30, 0)

    def test_month_end_clamps(self):
        assert compute_expiry("semester", datetime(2026, 10, 31)) == datetime(2027, 2, 28)

    def test_leap_day_annual(self):
        assert compute_expiry("annual", datetime(2028, 2, 29)) == datetime(2029, 2, 28)


class TestPurchase:
    def test_end_to_end_semester(self, db, users):
        alice, _ = users
        result = purchase(db, alice, make_purchase(), now=PURCHASED_AT)

        assert re.fullmatch(r"PMT-[A-Z0-9]{8}", result.permit_id)
        assert re.fullmatch(r"TXN-[A-Z0-9]{12}", result.transaction_id)
        assert result.price == Decimal("50.00")
        assert result.license_plate == "ABC123"
        assert result.purchase_date == PURCHASED_AT
        assert result.expiry_date == datetime(2026, 5, 15, 9, 30, 0)

        entries = list_permits(db, alice, now=PURCHASED_AT)
        assert len(entries) == 1
        permit, status = entries[0]
        assert permit.permit_id == result.permit_id
        assert status == "active"

    def test_one_row_each(self, db, users):
        alice, _ = users
        purchase(db, alice, make_purchase(), now=PURCHASED_AT)
        assert row_count(Vehicle) == 1
        assert row_count(Permit) == 1
        assert row_count(Payment) == 1

    def test_payment_stores_only_card_tail(self, db, users):
        alice, _ = users
        result = purchase(db, alice, make_purchase(card_number="4111-1111-1111-1234"))

        payment = db.query(Payment).one()
        assert payment.card_last4 == "1234"
        assert payment.status == "completed"
        assert payment.amount == Decimal("50.00")
        assert payment.transaction_id == result.transaction_id
        stored = [str(getattr(payment, c.name)) for c in Payment.__table__.columns]
        stored += [str(getattr(db.query(Permit).one(), c.name)) for c in Permit.__table__.columns]
        assert not any("4111" in value for value in stored)
        assert "4111" not in repr(result)

    def test_status_derived_from_expiry(self, db, users):
        alice, _ = users
        purchase(db, alice, make_purchase(), now=datetime(2025, 1, 1))

        [(_, before)] = list_permits(db, alice, now=datetime(2025, 4, 30, 23, 59))
        [(_, after)] = list_permits(db, alice, now=datetime(2025, 5, 1))
        assert before == "active"
        assert after == "expired"

    def test_list_newest_first(self, db, users):
        alice, _ = users
        older = purchase(db, alice, make_purchase(), now=datetime(2025, 1, 1))
        newer = purchase(db, alice, make_purchase(category="annual"), now=datetime(2026, 1, 1))

        ids = [p.permit_id for p, _ in list_permits(db, alice, now=datetime(2026, 2, 1))]
        assert ids == [newer.permit_id, older.permit_id]


class TestVehicleIdentity:
    def test_same_plate_reuses_vehicle(self, db, users):
        alice, _ = users
        purchase(db, alice, make_purchase(license_plate="abc123"))
        purchase(db, alice, make_purchase(license_plate=" ABC123 ", category="annual"))

        permits = db.query(Permit).all()
        assert row_count(Vehicle) == 1
        assert permits[0].vehicle_id == permits[1].vehicle_id

    def test_lost_insert_race_reuses_winner(self, db, users):
        alice, _ = users
        # Another request commits the vehicle first
        other = SessionLocal()
        winner = vehicle_service.get_or_create_vehicle(other, alice.id, "ABC123", "Honda")
        winner_id = winner.id
        other.commit()
        other.close()

        purchase(db, alice, make_purchase(license_plate="abc123"))

        assert row_count(Vehicle) == 1
        permit = db.query(Permit).one()
        assert permit.vehicle_id == winner_id

    def test_concurrent_purchases_share_one_vehicle(self, db, users):
        alice, _ = users
        barrier = threading.Barrier(2)
        issued, failed = [], []

        def buy(category):
            session = SessionLocal()
            try:
                barrier.wait()
                issued.append(purchase(session, alice, make_purchase(category=category)))
            except PermitIssuanceError as e:
                # SQLite may refuse the second writer outright; it must leave nothing behind
                failed.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=buy, args=(c,)) for c in ("semester", "annual")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert len(issued) + len(failed) == 2
        assert issued
        assert row_count(Vehicle) == 1
        assert row_count(Permit) == row_count(Payment) == len(issued)
        vehicle_ids = {p.vehicle_id for p in db.query(Permit).all()}
        assert len(vehicle_ids) == 1

    def test_same_plate_different_users(self, db, users):
        alice, bob = users
        purchase(db, alice, make_purchase())
        purchase(db, bob, make_purchase())
        assert row_count(Vehicle) == 2


class TestAtomicity:
    def test_payment_failure_leaves_nothing(self, db, users):
        alice, _ = users
        with patch("app.services.permit_service.record_payment", side_effect=RuntimeError("boom")):
            with pytest.raises(PermitIssuanceError):
                purchase(db, alice, make_purchase())

        assert row_count(Vehicle) == 0
        assert row_count(Permit) == 0
        assert row_count(Payment) == 0

    def test_existing_vehicle_unchanged_after_failure(self, db, users):
        alice, _ = users
        vehicle_service.add_vehicle(db, alice, make="Honda", license_plate="abc123", model="Civic")

        with patch("app.services.permit_service.record_payment", side_effect=RuntimeError("boom")):
            with pytest.raises(PermitIssuanceError):
                purchase(db, alice, make_purchase(vehicle_make="Toyota"))

        vehicle = db.query(Vehicle).one()
        assert vehicle.make == "Honda"
        assert vehicle.model == "Civic"
        assert row_count(Permit) == 0
        assert row_count(Payment) == 0

    def test_store_error_is_opaque(self, db, users):
        alice, _ = users
        failure = OperationalError("INSERT INTO payments", {}, Exception("server closed the connection"))
        with patch("app.services.permit_service.record_payment", side_effect=failure):
            with pytest.raises(PermitIssuanceError) as exc:
                purchase(db, alice, make_purchase())

        assert exc.value.message == "Could not complete purchase"
        assert "connection" not in exc.value.message
        assert row_count(Permit) == 0

    def test_history_unchanged_after_failure(self, db, users):
        alice, _ = users
        first = purchase(db, alice, make_purchase(), now=datetime(2025, 1, 1))

        with patch("app.services.permit_service.record_payment", side_effect=RuntimeError("boom")):
            with pytest.raises(PermitIssuanceError):
                purchase(db, alice, make_purchase(license_plate="NEW999"))

        entries = list_permits(db, alice, now=datetime(2025, 2, 1))
        assert [p.permit_id for p, _ in entries] == [first.permit_id]
        assert row_count(Vehicle) == 1
        assert row_count(Payment) == 1


class TestIdentifierCollision:
    def test_collision_is_regenerated(self, db, users):
        alice, _ = users
        first = purchase(db, alice, make_purchase())

        with patch("app.services.permit_service.new_permit_id",
                   side_effect=[first.permit_id, "PMT-FRESH001"]):
            second = purchase(db, alice, make_purchase(category="annual"))

        assert second.permit_id == "PMT-FRESH001"
        assert row_count(Permit) == 2
        assert row_count(Payment) == 2

    def test_exhausted_retries_report_conflict(self, db, users):
        alice, _ = users
        first = purchase(db, alice, make_purchase())

        with patch("app.services.permit_service.new_permit_id", return_value=first.permit_id):
            with pytest.raises(PermitConflictError):
                purchase(db, alice, make_purchase(license_plate="XYZ789"))

        assert row_count(Permit) == 1
        assert row_count(Payment) == 1
        assert row_count(Vehicle) == 1
