# app/models/user.py
"""
Users table. Rows are provisioned by the identity provider at registration;
this backend only reads them to resolve the authenticated caller.
Never hard-deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)  # lower-cased, institution domain
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    student_id = Column(String(50))
    phone = Column(String(30))
    user_type = Column(String(20), nullable=False, default="student")  # student | faculty | staff
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<User {self.id} email={self.email}>"
