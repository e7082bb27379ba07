"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import (
    ReservationStatus, RoomStatus, RoomType, TaskType, TaskStatus, TaskPriority, BillStatus
)


def reject_null(value):
    """Partial updates may omit a field but not blank it with null"""
    if value is None:
        raise ValueError("may not be null")
    return value


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    number: str = Field(min_length=1)
    floor: int = Field(ge=0, default=1)
    room_type: RoomType = RoomType.STANDARD
    price: Decimal = Field(ge=0)
    amenities: List[str] = []


class UpdateRoomRequest(BaseModel):
    """Update room request DTO, status included for administrative edits"""
    number: Optional[str] = Field(None, min_length=1)
    floor: Optional[int] = Field(None, ge=0)
    room_type: Optional[RoomType] = None
    price: Optional[Decimal] = Field(None, ge=0)
    amenities: Optional[List[str]] = None
    status: Optional[RoomStatus] = None

    @validator("number", "floor", "room_type", "price", "amenities", "status", pre=True)
    def not_null(cls, v):
        return reject_null(v)


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    number: str
    floor: int
    room_type: RoomType
    price: Decimal
    amenities: List[str]
    status: RoomStatus
    last_cleaned: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# GUEST SCHEMAS
# ============================================================================

class CreateGuestRequest(BaseModel):
    """Create guest request DTO"""
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = ""
    address: str = ""
    id_number: str = ""
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = None
    special_requests: Optional[str] = None


class UpdateGuestRequest(BaseModel):
    """Update guest request DTO; lifetime counters are not writable"""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)
    phone: Optional[str] = None
    address: Optional[str] = None
    id_number: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = None
    special_requests: Optional[str] = None

    @validator("name", "email", "phone", "address", "id_number", pre=True)
    def not_null(cls, v):
        return reject_null(v)


class GuestResponse(BaseModel):
    """Guest response DTO"""
    guest_id: UUID
    name: str
    email: str
    phone: str
    address: str
    id_number: str
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = None
    special_requests: Optional[str] = None
    total_stays: int
    total_spent: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    guest_id: UUID
    room_id: UUID
    check_in_date: date
    check_out_date: date
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)
    special_requests: Optional[str] = None


class UpdateReservationRequest(BaseModel):
    """Update reservation request DTO; guest and room are fixed at creation"""
    status: Optional[ReservationStatus] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    adults: Optional[int] = Field(None, ge=1)
    children: Optional[int] = Field(None, ge=0)
    special_requests: Optional[str] = None

    @validator("status", "check_in_date", "check_out_date", "adults", "children", pre=True)
    def not_null(cls, v):
        return reject_null(v)


class ReservationResponse(BaseModel):
    """Reservation response DTO, joined with guest and room"""
    reservation_id: UUID
    guest_id: UUID
    room_id: UUID
    check_in_date: date
    check_out_date: date
    adults: int
    children: int
    status: ReservationStatus
    total_amount: Decimal
    currency: str
    special_requests: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    guest: GuestResponse
    room: RoomResponse


class LifecycleResponse(BaseModel):
    """Check-in / check-out response DTO"""
    message: str
    reservation: ReservationResponse


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


# ============================================================================
# HOUSEKEEPING SCHEMAS
# ============================================================================

class CreateHousekeepingTaskRequest(BaseModel):
    """Create housekeeping task request DTO"""
    room_id: UUID
    task_type: TaskType
    priority: TaskPriority = TaskPriority.MEDIUM
    notes: str = ""
    assigned_to: Optional[str] = None
    estimated_duration: int = Field(ge=0, default=30)


class UpdateHousekeepingTaskRequest(BaseModel):
    """Update housekeeping task request DTO"""
    status: Optional[TaskStatus] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    actual_duration: Optional[int] = Field(None, ge=0)


class HousekeepingTaskResponse(BaseModel):
    """Housekeeping task response DTO"""
    task_id: UUID
    room_id: UUID
    task_type: TaskType
    status: TaskStatus
    priority: TaskPriority
    notes: str
    assigned_to: Optional[str] = None
    estimated_duration: int
    actual_duration: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    room_number: Optional[str] = None


# ============================================================================
# BILLING SCHEMAS
# ============================================================================

class BillItemSchema(BaseModel):
    """Bill line DTO"""
    description: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1, default=1)


class BillItemResponse(BillItemSchema):
    total: Decimal


class CreateBillRequest(BaseModel):
    """Create bill request DTO; totals are computed server side"""
    reservation_id: UUID
    items: List[BillItemSchema] = Field(min_length=1)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class UpdateBillRequest(BaseModel):
    """Update bill request DTO; new items reprice the bill"""
    items: Optional[List[BillItemSchema]] = Field(None, min_length=1)
    due_date: Optional[date] = None
    notes: Optional[str] = None

    @validator("items", pre=True)
    def not_null(cls, v):
        return reject_null(v)


class PayBillRequest(BaseModel):
    payment_method: str = Field(min_length=1)
    notes: Optional[str] = None


class BillResponse(BaseModel):
    """Bill response DTO, with guest name and room number for display"""
    bill_id: UUID
    bill_number: str
    reservation_id: UUID
    guest_id: UUID
    room_id: UUID
    items: List[BillItemResponse]
    subtotal: Decimal
    tax: Decimal
    total_amount: Decimal
    currency: str
    status: BillStatus
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    guest_name: str
    room_number: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
