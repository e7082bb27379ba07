"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from domain.repositories import UnitOfWork
from domain.entities import (
    Reservation, Room, Guest, HousekeepingTask, Bill, BillItem,
    ReservationDetails, HousekeepingTaskDetails, BillDetails, utcnow
)
from domain.enums import RoomType, TaskType, TaskPriority, TaskStatus
from domain.exceptions import NotFoundError, InvalidStateError, ValidationError
from domain.value_objects import DateRange, GuestCount

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWork]


class ReservationService:
    """Reservation lifecycle manager.

    Owns the reservation state machine and the side effects of its two
    guarded transitions. Check-in and check-out each run inside a single
    unit of work: the status precondition is read inside the unit, so the
    store's serialization decides which of two racing callers wins.

    ``update_reservation`` and ``delete_reservation`` are administrative
    paths: they touch only the reservation record and never re-synchronize
    room status or guest counters.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def _join(self, uow: UnitOfWork, reservation: Reservation) -> Optional[ReservationDetails]:
        guest = await uow.guests.find_by_id(reservation.guest_id)
        room = await uow.rooms.find_by_id(reservation.room_id)
        if guest is None or room is None:
            return None
        return ReservationDetails(reservation=reservation, guest=guest, room=room)

    async def _load(self, uow: UnitOfWork, reservation_id: UUID) -> Reservation:
        reservation = await uow.reservations.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: UUID) -> ReservationDetails:
        """Get reservation by ID, joined with guest and room"""
        uow = self._uow_factory()
        details = await self._join(uow, await self._load(uow, reservation_id))
        if details is None:
            raise NotFoundError("Reservation not found")
        return details

    async def get_all_reservations(self) -> List[ReservationDetails]:
        """Get all reservations whose guest and room still resolve"""
        uow = self._uow_factory()
        results = []
        for reservation in await uow.reservations.find_all():
            details = await self._join(uow, reservation)
            if details is not None:
                results.append(details)
        return results

    # ==================== CREATION ====================
    async def create_reservation(
        self,
        guest_id: UUID,
        room_id: UUID,
        check_in_date: date,
        check_out_date: date,
        adults: int,
        children: int = 0,
        special_requests: Optional[str] = None
    ) -> ReservationDetails:
        """Book a room for a guest, priced at the room's nightly rate"""
        if check_out_date <= check_in_date:
            raise ValidationError("Check-out must be after check-in")
        if adults < 1:
            raise ValidationError("At least one adult is required")
        if children < 0:
            raise ValidationError("Children cannot be negative")
        date_range = DateRange(check_in=check_in_date, check_out=check_out_date)
        guest_count = GuestCount(adults=adults, children=children)

        async with self._uow_factory() as uow:
            guest = await uow.guests.find_by_id(guest_id)
            if guest is None:
                raise ValidationError("Guest not found")

            room = await uow.rooms.find_by_id(room_id)
            if room is None:
                raise ValidationError("Room not found")

            booked = await uow.reservations.find_by_room_id(room_id)
            if any(existing.conflicts_with(date_range) for existing in booked):
                raise ValidationError("Room is not available for the selected dates")

            reservation = Reservation.create(
                guest_id=guest_id,
                room_id=room_id,
                date_range=date_range,
                guest_count=guest_count,
                nightly_rate=room.price,
                special_requests=special_requests
            )
            reservation = await uow.reservations.add(reservation)
            await uow.commit()

        logger.info(
            "Reservation %s created for guest %s in room %s (%s nights, total %s)",
            reservation.reservation_id, guest_id, room.number, date_range.nights(), reservation.total_amount
        )
        return ReservationDetails(reservation=reservation, guest=guest, room=room)

    # ==================== STATE TRANSITIONS ====================
    async def check_in(self, reservation_id: UUID) -> ReservationDetails:
        """Check the guest in: occupy the room and credit the guest's history"""
        async with self._uow_factory() as uow:
            reservation = await self._load(uow, reservation_id)
            try:
                reservation.check_in()
            except InvalidStateError:
                logger.warning(
                    "Check-in rejected for reservation %s in status %s",
                    reservation_id, reservation.status.value
                )
                raise

            room = await uow.rooms.find_by_id(reservation.room_id)
            if room is None:
                raise NotFoundError("Room not found")
            guest = await uow.guests.find_by_id(reservation.guest_id)
            if guest is None:
                raise NotFoundError("Guest not found")

            room.occupy()
            guest.record_stay(reservation.total_amount)

            reservation = await uow.reservations.update(reservation)
            room = await uow.rooms.update(room)
            guest = await uow.guests.update(guest)
            await uow.commit()

        logger.info("Reservation %s checked in to room %s", reservation_id, room.number)
        return ReservationDetails(reservation=reservation, guest=guest, room=room)

    async def check_out(self, reservation_id: UUID) -> ReservationDetails:
        """Check the guest out: release the room to housekeeping"""
        async with self._uow_factory() as uow:
            reservation = await self._load(uow, reservation_id)
            try:
                reservation.check_out()
            except InvalidStateError:
                logger.warning(
                    "Check-out rejected for reservation %s in status %s",
                    reservation_id, reservation.status.value
                )
                raise

            room = await uow.rooms.find_by_id(reservation.room_id)
            if room is None:
                raise NotFoundError("Room not found")
            guest = await uow.guests.find_by_id(reservation.guest_id)
            if guest is None:
                raise NotFoundError("Guest not found")

            room.send_to_cleaning()
            task = HousekeepingTask.post_checkout(reservation.room_id)

            reservation = await uow.reservations.update(reservation)
            room = await uow.rooms.update(room)
            await uow.housekeeping_tasks.add(task)
            await uow.commit()

        logger.info(
            "Reservation %s checked out of room %s, cleaning task %s raised",
            reservation_id, room.number, task.task_id
        )
        return ReservationDetails(reservation=reservation, guest=guest, room=room)

    # ==================== ADMINISTRATIVE ====================
    async def update_reservation(self, reservation_id: UUID, fields: Dict[str, Any]) -> ReservationDetails:
        """Overwrite reservation fields as given.

        Any status may be set here, cancelled included. Room status and guest
        counters are left exactly as they are.
        """
        changes = dict(fields)
        changes["updated_at"] = utcnow()

        async with self._uow_factory() as uow:
            reservation = await uow.reservations.update_fields(reservation_id, changes)
            if reservation is None:
                raise NotFoundError("Reservation not found")
            details = await self._join(uow, reservation)
            await uow.commit()

        if details is None:
            raise NotFoundError("Reservation not found")
        logger.info("Reservation %s updated: %s", reservation_id, sorted(fields))
        return details

    async def delete_reservation(self, reservation_id: UUID) -> None:
        """Delete a reservation regardless of its status"""
        uow = self._uow_factory()
        if not await uow.reservations.delete(reservation_id):
            raise NotFoundError("Reservation not found")
        logger.info("Reservation %s deleted", reservation_id)


class RoomService:
    """Service for room inventory"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def get_all_rooms(self) -> List[Room]:
        return await self._uow_factory().rooms.find_all()

    async def get_room(self, room_id: UUID) -> Room:
        room = await self._uow_factory().rooms.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def create_room(
        self,
        number: str,
        price: Decimal,
        floor: int = 1,
        room_type: RoomType = RoomType.STANDARD,
        amenities: Optional[List[str]] = None
    ) -> Room:
        """Add a room to inventory; new rooms start available"""
        async with self._uow_factory() as uow:
            if await uow.rooms.find_by_number(number):
                raise ValidationError("Room number already exists")
            room = await uow.rooms.add(Room(
                number=number,
                floor=floor,
                room_type=room_type,
                price=price,
                amenities=amenities or []
            ))
            await uow.commit()

        logger.info("Room %s added (%s, floor %s)", room.number, room.room_type.value, room.floor)
        return room

    async def update_room(self, room_id: UUID, fields: Dict[str, Any]) -> Room:
        """Administrative edit; may set any status"""
        changes = dict(fields)
        changes["updated_at"] = utcnow()

        async with self._uow_factory() as uow:
            number = changes.get("number")
            if number is not None:
                existing = await uow.rooms.find_by_number(number)
                if existing and existing.room_id != room_id:
                    raise ValidationError("Room number already exists")
            room = await uow.rooms.update_fields(room_id, changes)
            if room is None:
                raise NotFoundError("Room not found")
            await uow.commit()
        return room

    async def delete_room(self, room_id: UUID) -> None:
        """Remove a room that no active reservation holds"""
        async with self._uow_factory() as uow:
            booked = await uow.reservations.find_by_room_id(room_id)
            if any(reservation.holds_room() for reservation in booked):
                raise ValidationError("Cannot delete room with active reservations")
            if not await uow.rooms.delete(room_id):
                raise NotFoundError("Room not found")
            await uow.commit()
        logger.info("Room %s deleted", room_id)


class GuestService:
    """Service for the guest registry"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def get_all_guests(self) -> List[Guest]:
        """Newest guests first"""
        guests = await self._uow_factory().guests.find_all()
        return sorted(guests, key=lambda g: g.created_at, reverse=True)

    async def get_guest(self, guest_id: UUID) -> Guest:
        guest = await self._uow_factory().guests.find_by_id(guest_id)
        if guest is None:
            raise NotFoundError("Guest not found")
        return guest

    async def register_guest(self, name: str, email: str, **profile) -> Guest:
        """Register a guest with empty lifetime counters"""
        async with self._uow_factory() as uow:
            if await uow.guests.find_by_email(email):
                raise ValidationError("Guest with this email already exists")
            guest = await uow.guests.add(Guest(name=name, email=email, **profile))
            await uow.commit()

        logger.info("Guest %s registered", guest.guest_id)
        return guest

    async def update_guest(self, guest_id: UUID, fields: Dict[str, Any]) -> Guest:
        changes = dict(fields)
        changes["updated_at"] = utcnow()

        async with self._uow_factory() as uow:
            email = changes.get("email")
            if email is not None:
                existing = await uow.guests.find_by_email(email)
                if existing and existing.guest_id != guest_id:
                    raise ValidationError("Guest with this email already exists")
            guest = await uow.guests.update_fields(guest_id, changes)
            if guest is None:
                raise NotFoundError("Guest not found")
            await uow.commit()
        return guest


class HousekeepingService:
    """Service for housekeeping tasks"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def _with_room(self, uow: UnitOfWork, task: HousekeepingTask) -> HousekeepingTaskDetails:
        return HousekeepingTaskDetails(task=task, room=await uow.rooms.find_by_id(task.room_id))

    async def get_all_tasks(self) -> List[HousekeepingTaskDetails]:
        """Newest tasks first"""
        uow = self._uow_factory()
        tasks = sorted(await uow.housekeeping_tasks.find_all(), key=lambda t: t.created_at, reverse=True)
        return [await self._with_room(uow, task) for task in tasks]

    async def get_task(self, task_id: UUID) -> HousekeepingTaskDetails:
        uow = self._uow_factory()
        task = await uow.housekeeping_tasks.find_by_id(task_id)
        if task is None:
            raise NotFoundError("Housekeeping task not found")
        return await self._with_room(uow, task)

    async def create_task(
        self,
        room_id: UUID,
        task_type: TaskType,
        priority: TaskPriority = TaskPriority.MEDIUM,
        notes: str = "",
        assigned_to: Optional[str] = None,
        estimated_duration: int = 30
    ) -> HousekeepingTaskDetails:
        async with self._uow_factory() as uow:
            room = await uow.rooms.find_by_id(room_id)
            if room is None:
                raise NotFoundError("Room not found")
            task = await uow.housekeeping_tasks.add(HousekeepingTask(
                room_id=room_id,
                task_type=task_type,
                priority=priority,
                notes=notes,
                assigned_to=assigned_to,
                estimated_duration=estimated_duration
            ))
            await uow.commit()

        logger.info("Housekeeping task %s (%s) raised for room %s", task.task_id, task_type.value, room.number)
        return HousekeepingTaskDetails(task=task, room=room)

    async def update_task(
        self,
        task_id: UUID,
        status: Optional[TaskStatus] = None,
        assigned_to: Optional[str] = None,
        notes: Optional[str] = None,
        actual_duration: Optional[int] = None
    ) -> HousekeepingTaskDetails:
        """Update a task; completing a cleaning task frees its room"""
        async with self._uow_factory() as uow:
            task = await uow.housekeeping_tasks.find_by_id(task_id)
            if task is None:
                raise NotFoundError("Housekeeping task not found")

            if status is not None:
                task.change_status(status, actual_duration)
            if assigned_to is not None:
                task.assigned_to = assigned_to
            if notes is not None:
                task.notes = notes
            if actual_duration is not None:
                task.actual_duration = actual_duration
            task.updated_at = utcnow()
            task = await uow.housekeeping_tasks.update(task)

            room = await uow.rooms.find_by_id(task.room_id)
            if status is not None and task.frees_room() and room is not None:
                room.mark_cleaned()
                room = await uow.rooms.update(room)
                logger.info("Room %s cleaned and available", room.number)
            await uow.commit()

        return HousekeepingTaskDetails(task=task, room=room)

    async def delete_task(self, task_id: UUID) -> None:
        if not await self._uow_factory().housekeeping_tasks.delete(task_id):
            raise NotFoundError("Housekeeping task not found")


class BillingService:
    """Bills raised against reservations.

    A bill copies its guest and room from the reservation when raised and
    prices its items with ``tax_rate``. Payment is a one-way transition;
    once paid, a bill can no longer be repriced or paid again.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, tax_rate: Decimal = Decimal("0.10")):
        self._uow_factory = uow_factory
        self._tax_rate = tax_rate

    async def _join(self, uow: UnitOfWork, bill: Bill) -> Optional[BillDetails]:
        reservation = await uow.reservations.find_by_id(bill.reservation_id)
        guest = await uow.guests.find_by_id(bill.guest_id)
        room = await uow.rooms.find_by_id(bill.room_id)
        if reservation is None or guest is None or room is None:
            return None
        return BillDetails(bill=bill, reservation=reservation, guest=guest, room=room)

    async def _load(self, uow: UnitOfWork, bill_id: UUID) -> Bill:
        bill = await uow.bills.find_by_id(bill_id)
        if bill is None:
            raise NotFoundError("Bill not found")
        return bill

    async def get_all_bills(self) -> List[BillDetails]:
        """Newest bills first, skipping bills whose reservation is gone"""
        uow = self._uow_factory()
        bills = sorted(await uow.bills.find_all(), key=lambda b: (b.created_at, b.sequence()), reverse=True)
        results = []
        for bill in bills:
            details = await self._join(uow, bill)
            if details is not None:
                results.append(details)
        return results

    async def get_bill(self, bill_id: UUID) -> BillDetails:
        uow = self._uow_factory()
        details = await self._join(uow, await self._load(uow, bill_id))
        if details is None:
            raise NotFoundError("Bill not found")
        return details

    async def create_bill(
        self,
        reservation_id: UUID,
        items: List[Dict[str, Any]],
        due_date: Optional[date] = None,
        notes: Optional[str] = None
    ) -> BillDetails:
        if not items:
            raise ValidationError("A bill needs at least one item")

        async with self._uow_factory() as uow:
            reservation = await uow.reservations.find_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation not found")

            existing = await uow.bills.find_all()
            sequence = max((bill.sequence() for bill in existing), default=0) + 1
            bill = Bill.create(
                bill_number=Bill.number_for(sequence),
                reservation=reservation,
                items=[BillItem(**item) for item in items],
                tax_rate=self._tax_rate,
                due_date=due_date,
                notes=notes
            )
            bill = await uow.bills.add(bill)
            details = await self._join(uow, bill)
            if details is None:
                raise NotFoundError("Guest or room for this reservation not found")
            await uow.commit()

        logger.info("Bill %s raised for reservation %s (total %s)", bill.bill_number, reservation_id, bill.total_amount)
        return details

    async def update_bill(self, bill_id: UUID, fields: Dict[str, Any]) -> BillDetails:
        """Edit due date and notes; new items reprice a pending bill"""
        async with self._uow_factory() as uow:
            bill = await self._load(uow, bill_id)
            if "items" in fields:
                bill.price_items([BillItem(**item) for item in fields["items"]], self._tax_rate)
            for key in ("due_date", "notes"):
                if key in fields:
                    setattr(bill, key, fields[key])
            bill.updated_at = utcnow()

            bill = await uow.bills.update(bill)
            details = await self._join(uow, bill)
            if details is None:
                raise NotFoundError("Bill not found")
            await uow.commit()

        return details

    async def pay_bill(self, bill_id: UUID, payment_method: str, notes: Optional[str] = None) -> Bill:
        """Settle a bill; a bill can only be paid once"""
        async with self._uow_factory() as uow:
            bill = await self._load(uow, bill_id)
            try:
                bill.pay(payment_method, notes)
            except InvalidStateError:
                logger.warning("Payment rejected for bill %s, already paid", bill.bill_number)
                raise
            bill = await uow.bills.update(bill)
            await uow.commit()

        logger.info("Bill %s paid by %s", bill.bill_number, payment_method)
        return bill

    async def delete_bill(self, bill_id: UUID) -> None:
        if not await self._uow_factory().bills.delete(bill_id):
            raise NotFoundError("Bill not found")
        logger.info("Bill %s deleted", bill_id)
