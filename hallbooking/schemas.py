"""Pydantic schemas shared across the services."""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional

from pydantic import BaseModel, EmailStr, Field

from .models import BookingStatus, RoleEnum


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserBase(BaseModel):
    name: str = Field(..., max_length=100)
    username: str = Field(..., max_length=50)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    role: RoleEnum = RoleEnum.DEPARTMENT


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserRead(UserBase):
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class HallBase(BaseModel):
    name: str = Field(..., max_length=100)
    capacity: int = Field(..., gt=0)


class HallCreate(HallBase):
    pass


class HallUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    capacity: Optional[int] = Field(None, gt=0)


class HallRead(HallBase):
    id: int

    model_config = {"from_attributes": True}


class DaySlot(BaseModel):
    start_time: str
    end_time: str


class BookingBase(BaseModel):
    hall_name: str = Field(..., max_length=100)
    slot: Optional[str] = Field(None, max_length=50)
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    day_slots: Optional[Dict[str, DaySlot]] = None

    booking_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    slot_title: Optional[str] = Field(None, max_length=200)
    remarks: Optional[str] = None


class BookingCreate(BookingBase):
    status: Optional[BookingStatus] = None


class BookingUpdate(BaseModel):
    hall_name: Optional[str] = Field(None, max_length=100)
    slot: Optional[str] = Field(None, max_length=50)
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    day_slots: Optional[Dict[str, DaySlot]] = None

    booking_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    slot_title: Optional[str] = Field(None, max_length=200)
    remarks: Optional[str] = None
    status: Optional[BookingStatus] = None
    cancellation_reason: Optional[str] = None


class BookingRead(BookingBase):
    id: int
    user_id: Optional[int] = None
    status: str
    created_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    applied_at: datetime

    model_config = {"from_attributes": True}


class CancelRequest(BaseModel):
    cancellation_reason: Optional[str] = None
    remarks: Optional[str] = None


class CalendarDayRead(BaseModel):
    date: date
    free: bool
    booking_count: int

    model_config = {"from_attributes": True}


class Availability(BaseModel):
    available: bool
    code: Optional[str] = None
    detail: Optional[str] = None


class AuditLogRead(BaseModel):
    id: int
    action: str
    actor: str
    actor_role: str
    target_id: Optional[str] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
