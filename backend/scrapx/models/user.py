"""
User profile model
"""

from sqlalchemy import Column, String, Boolean
from .base import BaseModel, enum_type
from ..enums.user import UserRole


class User(BaseModel):
    __tablename__ = "profiles"

    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    wallet_address = Column(String(42), nullable=True)  # Last wallet used to claim a reward

    role = Column(enum_type(UserRole), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
