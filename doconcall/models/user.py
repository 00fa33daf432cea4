"""User model definitions."""

from sqlalchemy import Boolean, Column, String
from doconcall.database import Base


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String, unique=True, index=True)
    name = Column(String)
    role = Column(String)  # client/doctor/admin
    approved = Column(Boolean, default=False)  # doctors only
