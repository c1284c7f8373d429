from sqlalchemy import Column, String, Enum, Boolean
from healthquote.models.base import BaseModel
from healthquote.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    username = Column(String(64), unique=True, nullable=False, index=True)
    first_name = Column(String(80))
    last_name = Column(String(80))
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.AGENT)
    active = Column(Boolean, nullable=False, default=True)
