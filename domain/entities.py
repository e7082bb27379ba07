"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List
from decimal import Decimal

from domain.enums import (
    ReservationStatus, RoomStatus, RoomType, TaskType, TaskStatus, TaskPriority, BillStatus,
    ACTIVE_RESERVATION_STATUSES
)
from domain.exceptions import InvalidStateError
from domain.value_objects import DateRange, GuestCount


POST_CHECKOUT_NOTE = "Post-checkout cleaning"
BILL_NUMBER_PREFIX = "BILL-"
CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Room(BaseModel):
    """Room Entity"""

    room_id: UUID = Field(default_factory=uuid4)
    number: str
    floor: int = Field(ge=0, default=1)
    room_type: RoomType = RoomType.STANDARD
    price: Decimal = Field(ge=0)
    amenities: List[str] = []

    status: RoomStatus = RoomStatus.AVAILABLE
    last_cleaned: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    def occupy(self) -> None:
        """Guest has checked in"""
        self.status = RoomStatus.OCCUPIED
        self.updated_at = utcnow()

    def send_to_cleaning(self) -> None:
        """Guest has checked out, room awaits housekeeping"""
        self.status = RoomStatus.CLEANING
        self.updated_at = utcnow()

    def mark_cleaned(self) -> None:
        """Housekeeping finished a cleaning task"""
        now = utcnow()
        self.status = RoomStatus.AVAILABLE
        self.last_cleaned = now
        self.updated_at = now


class Guest(BaseModel):
    """Guest Entity"""

    guest_id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str = ""
    address: str = ""
    id_number: str = ""
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = None
    special_requests: Optional[str] = None

    # Lifetime counters, only ever incremented by check-in
    total_stays: int = Field(ge=0, default=0)
    total_spent: Decimal = Field(ge=0, default=Decimal("0"))

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    def record_stay(self, amount: Decimal) -> None:
        """Credit one stay and its amount to the guest's history"""
        self.total_stays += 1
        self.total_spent += amount
        self.updated_at = utcnow()


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References, fixed at creation
    guest_id: UUID
    room_id: UUID

    check_in_date: date
    check_out_date: date
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)

    status: ReservationStatus = ReservationStatus.CONFIRMED
    total_amount: Decimal = Field(ge=0)
    special_requests: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_id: UUID,
        room_id: UUID,
        date_range: DateRange,
        guest_count: GuestCount,
        nightly_rate: Decimal,
        special_requests: Optional[str] = None
    ) -> "Reservation":
        """Create a confirmed reservation priced for the whole stay"""
        return Reservation(
            guest_id=guest_id,
            room_id=room_id,
            check_in_date=date_range.check_in,
            check_out_date=date_range.check_out,
            adults=guest_count.adults,
            children=guest_count.children,
            status=ReservationStatus.CONFIRMED,
            total_amount=Decimal(date_range.nights()) * nightly_rate,
            special_requests=special_requests
        )

    # ==================== STATE TRANSITION METHODS ====================
    def check_in(self) -> None:
        """Mark guest as checked in"""
        if self.status != ReservationStatus.CONFIRMED:
            raise InvalidStateError("Reservation is not in confirmed status")

        self.status = ReservationStatus.CHECKED_IN
        self.updated_at = utcnow()

    def check_out(self) -> None:
        """Mark guest as checked out"""
        if self.status != ReservationStatus.CHECKED_IN:
            raise InvalidStateError("Reservation is not in checked-in status")

        self.status = ReservationStatus.CHECKED_OUT
        self.updated_at = utcnow()

    # ==================== QUERY METHODS ====================
    def holds_room(self) -> bool:
        return self.status in ACTIVE_RESERVATION_STATUSES

    def conflicts_with(self, date_range: DateRange) -> bool:
        """Check whether this reservation blocks its room for the given stay"""
        return self.holds_room() and date_range.overlaps(self.check_in_date, self.check_out_date)


class HousekeepingTask(BaseModel):
    """Housekeeping Task Entity"""

    task_id: UUID = Field(default_factory=uuid4)
    room_id: UUID

    task_type: TaskType
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    notes: str = ""
    assigned_to: Optional[str] = None

    # Minutes
    estimated_duration: int = Field(ge=0, default=30)
    actual_duration: Optional[int] = Field(ge=0, default=None)

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @staticmethod
    def post_checkout(room_id: UUID) -> "HousekeepingTask":
        """Cleaning task raised when a guest leaves a room"""
        return HousekeepingTask(
            room_id=room_id,
            task_type=TaskType.CLEANING,
            status=TaskStatus.PENDING,
            priority=TaskPriority.HIGH,
            notes=POST_CHECKOUT_NOTE
        )

    def change_status(self, status: TaskStatus, actual_duration: Optional[int] = None) -> None:
        """Move the task along, stamping start and completion times"""
        now = utcnow()
        self.status = status

        if status == TaskStatus.IN_PROGRESS and self.started_at is None:
            self.started_at = now

        if status == TaskStatus.COMPLETED:
            self.completed_at = now
            if actual_duration is not None:
                self.actual_duration = actual_duration

        self.updated_at = now

    def frees_room(self) -> bool:
        """A completed cleaning makes its room available again"""
        return self.status == TaskStatus.COMPLETED and self.task_type == TaskType.CLEANING


class BillItem(BaseModel):
    """One charge line on a bill"""
    description: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1, default=1)

    class Config:
        frozen = True

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


class Bill(BaseModel):
    """Bill Entity, raised against a reservation"""

    bill_id: UUID = Field(default_factory=uuid4)
    bill_number: str

    # Copied from the reservation when the bill is raised
    reservation_id: UUID
    guest_id: UUID
    room_id: UUID

    items: List[BillItem] = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)
    tax: Decimal = Field(ge=0)
    total_amount: Decimal = Field(ge=0)

    status: BillStatus = BillStatus.PENDING
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @staticmethod
    def number_for(sequence: int) -> str:
        return f"{BILL_NUMBER_PREFIX}{sequence:06d}"

    def sequence(self) -> int:
        return int(self.bill_number[len(BILL_NUMBER_PREFIX):])

    @staticmethod
    def create(
        bill_number: str,
        reservation: Reservation,
        items: List[BillItem],
        tax_rate: Decimal,
        due_date: Optional[date] = None,
        notes: Optional[str] = None
    ) -> "Bill":
        """Raise a pending bill for a reservation's guest and room"""
        bill = Bill(
            bill_number=bill_number,
            reservation_id=reservation.reservation_id,
            guest_id=reservation.guest_id,
            room_id=reservation.room_id,
            items=items,
            subtotal=Decimal("0"),
            tax=Decimal("0"),
            total_amount=Decimal("0"),
            due_date=due_date,
            notes=notes
        )
        bill.price_items(items, tax_rate)
        return bill

    def price_items(self, items: List[BillItem], tax_rate: Decimal) -> None:
        """Replace the charge lines and recompute subtotal, tax and total"""
        if self.status == BillStatus.PAID:
            raise InvalidStateError("Bill is already paid")

        self.items = list(items)
        self.subtotal = sum((item.total for item in items), Decimal("0"))
        self.tax = (self.subtotal * tax_rate).quantize(CENT)
        self.total_amount = self.subtotal + self.tax
        self.updated_at = utcnow()

    def pay(self, payment_method: str, notes: Optional[str] = None) -> None:
        """Settle the bill"""
        if self.status == BillStatus.PAID:
            raise InvalidStateError("Bill is already paid")

        now = utcnow()
        self.status = BillStatus.PAID
        self.payment_method = payment_method
        self.paid_at = now
        if notes is not None:
            self.notes = notes
        self.updated_at = now


class ReservationDetails(BaseModel):
    """Reservation joined with its current guest and room records"""
    reservation: Reservation
    guest: Guest
    room: Room


class HousekeepingTaskDetails(BaseModel):
    """Task joined with its room, when the room still exists"""
    task: HousekeepingTask
    room: Optional[Room] = None


class BillDetails(BaseModel):
    """Bill joined with its reservation, guest and room"""
    bill: Bill
    reservation: Reservation
    guest: Guest
    room: Room
