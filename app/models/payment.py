# app/models/payment.py
"""
Payments table. Exactly one payment per permit, written in the same
transaction. Only the last 4 card digits are ever stored.
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(20), unique=True, nullable=False, index=True)  # TXN-XXXXXXXXXXXX
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    permit_id = Column(Integer, ForeignKey("permits.id"), unique=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    card_last4 = Column(String(4), nullable=False)
    status = Column(String(20), nullable=False, default="completed")
    paid_at = Column(DateTime, nullable=False, index=True)

    permit = relationship("Permit", back_populates="payment")

    def __repr__(self):
        return f"<Payment {self.transaction_id} amount={self.amount} status={self.status}>"
