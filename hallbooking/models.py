"""SQLAlchemy models shared across all services."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class RoleEnum(str, Enum):
    ADMIN = "admin"
    DEPARTMENT = "department"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    CANCELLED = "CANCELLED"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), default=None)
    role: Mapped[RoleEnum] = mapped_column(SqlEnum(RoleEnum), default=RoleEnum.DEPARTMENT)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="user")


class Hall(Base):
    __tablename__ = "halls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    capacity: Mapped[int] = mapped_column(Integer)


class Booking(Base):
    """A hall reservation.

    Dates and clock times are kept as the ``YYYY-MM-DD`` / ``HH:mm`` strings
    that were submitted; the booking engine parses them on every read so a
    corrupt row can be skipped instead of breaking a whole hall.
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, default=None)
    hall_name: Mapped[str] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(String(30), default=BookingStatus.PENDING.value, index=True)

    slot: Mapped[Optional[str]] = mapped_column(String(50), default=None)
    date: Mapped[Optional[str]] = mapped_column(String(10), default=None, index=True)
    start_time: Mapped[Optional[str]] = mapped_column(String(5), default=None)
    end_time: Mapped[Optional[str]] = mapped_column(String(5), default=None)
    start_date: Mapped[Optional[str]] = mapped_column(String(10), default=None, index=True)
    end_date: Mapped[Optional[str]] = mapped_column(String(10), default=None, index=True)
    day_slots: Mapped[Optional[dict]] = mapped_column(JSON, default=None)

    booking_name: Mapped[Optional[str]] = mapped_column(String(100), default=None)
    email: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    department: Mapped[Optional[str]] = mapped_column(String(100), default=None, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), default=None)
    slot_title: Mapped[Optional[str]] = mapped_column(String(200), default=None)
    remarks: Mapped[Optional[str]] = mapped_column(Text, default=None)
    created_by: Mapped[Optional[str]] = mapped_column(String(20), default=None)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, default=None)
    applied_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped[Optional[User]] = relationship(back_populates="bookings")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    action: Mapped[str] = mapped_column(String(50), index=True)
    actor: Mapped[str] = mapped_column(String(255))
    actor_role: Mapped[str] = mapped_column(String(20))
    target_id: Mapped[Optional[str]] = mapped_column(String(50), default=None)
    details: Mapped[Optional[str]] = mapped_column(Text, default=None)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
