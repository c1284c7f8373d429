from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from healthquote.models.base import BaseModel


class Client(BaseModel):
    __tablename__ = "clients"
    dni = Column(String(8), nullable=False, unique=True, index=True)
    first_names = Column(String(120))
    last_names = Column(String(120))
    email = Column(String(120))
    phone = Column(String(20))
    address = Column(String(255))
    postal_code = Column(String(10))
    city = Column(String(80))
    province = Column(String(80))
    captured_by = Column(ForeignKey("users.id"), nullable=False)
    captor = relationship("User", backref="clients")
