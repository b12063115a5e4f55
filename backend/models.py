"""
Database models for the client history
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Client(Base):
    """A pilgrim's extracted (and possibly edited) paperwork record"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(255), nullable=False)
    email = Column(String(255))
    passport_number = Column(String(50), index=True)
    visa_number = Column(String(50), index=True)
    birth_date = Column(String(10))
    medina_hotel = Column(String(255))
    mecca_hotel = Column(String(255))
    room_type = Column(String(50))
    client_photo = Column(Text)  # base64 data-URI
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
