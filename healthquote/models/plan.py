from sqlalchemy import Column, String, Text, Boolean
from healthquote.models.base import BaseModel


class Plan(BaseModel):
    __tablename__ = "plans"
    name = Column(String(120), nullable=False, unique=True)
    details = Column(Text)
    active = Column(Boolean, nullable=False, default=True)
