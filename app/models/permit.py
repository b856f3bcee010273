# app/models/permit.py
"""
Permits table. One row per purchased parking permit. Immutable once written;
active/expired status is derived from expires_at at read time, so there is
no status column to keep in sync.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class Permit(Base):
    __tablename__ = "permits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    permit_id = Column(String(20), unique=True, nullable=False, index=True)  # PMT-XXXXXXXX
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    full_name = Column(String(200), nullable=False)
    student_id = Column(String(50), nullable=False)
    vehicle_make = Column(String(100), nullable=False)
    license_plate = Column(String(20), nullable=False)
    category = Column(String(20), nullable=False)     # semester | annual
    price = Column(Numeric(10, 2), nullable=False)
    purchased_at = Column(DateTime, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)

    payment = relationship("Payment", back_populates="permit", uselist=False)

    def status_at(self, now) -> str:
        return "active" if now < self.expires_at else "expired"

    def __repr__(self):
        return f"<Permit {self.permit_id} category={self.category} user={self.user_id}>"
