# app/models/vehicle.py
"""
Vehicles table. Each vehicle belongs to exactly one user and is unique per
(user, license plate). Created by explicit registration or on first
reference by a permit purchase.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from app.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        UniqueConstraint("user_id", "license_plate", name="uq_vehicles_user_plate"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(String(20), unique=True, nullable=False, index=True)  # VEH-XXXXXXXX
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100))
    year = Column(Integer)
    color = Column(String(50))
    license_plate = Column(String(20), nullable=False)   # always upper-case
    registered_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Vehicle {self.vehicle_id} plate={self.license_plate} user={self.user_id}>"
