"""
SQLAlchemy ORM models for the Reobote lead agent.

Persistent entities: finished attendances (guided conversations).
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Attendance(Base):
    __tablename__ = "attendances"

    # Insertion sequence; breaks created_at ties in listings
    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(40), unique=True, nullable=False)
    lead_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    credit_type = Column(String(20), nullable=False)  # IMÓVEL, AUTO, NEGÓCIO, EDUCAÇÃO
    lead_message = Column(Text, nullable=True)
    messages_json = Column(JSON, default=list)
    score = Column(Float, nullable=False)
    priority = Column(String(10), nullable=False)  # high, medium, low
    has_interest = Column(Boolean, default=True)
    whatsapp_link = Column(Text, nullable=True)
    status = Column(String(20), default="encaminhado")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_attendance_created", "created_at"),
        Index("ix_attendance_priority", "priority"),
    )
