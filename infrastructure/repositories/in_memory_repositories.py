"""In-Memory Repository Implementations"""
import asyncio
import logging
from typing import Optional, List, Dict, Any
from uuid import UUID

from pydantic import BaseModel

from domain.repositories import (
    ReservationRepository, RoomRepository, GuestRepository, HousekeepingTaskRepository, BillRepository,
    UnitOfWork
)
from domain.entities import Reservation, Room, Guest, HousekeepingTask

logger = logging.getLogger(__name__)


class InMemoryDatabase:
    """Process-local document store.

    Records are stored as private copies and handed out as copies, so a
    record only changes through an explicit add/update call. A single lock
    serializes units of work.
    """

    COLLECTIONS = ("reservations", "rooms", "guests", "housekeeping_tasks", "bills")

    def __init__(self):
        self.collections: Dict[str, Dict[UUID, BaseModel]] = {name: {} for name in self.COLLECTIONS}
        self.lock = asyncio.Lock()

    def snapshot(self) -> Dict[str, Dict[UUID, BaseModel]]:
        # stored records are never mutated in place, a shallow copy is enough
        return {name: dict(records) for name, records in self.collections.items()}

    def restore(self, snapshot: Dict[str, Dict[UUID, BaseModel]]) -> None:
        for name, records in snapshot.items():
            self.collections[name].clear()
            self.collections[name].update(records)

    def clear(self) -> None:
        for records in self.collections.values():
            records.clear()


class _InMemoryCollection:
    """Shared keyed-record operations over one collection"""

    collection: str
    id_field: str

    def __init__(self, database: InMemoryDatabase):
        self._storage = database.collections[self.collection]

    def _key(self, record) -> UUID:
        return getattr(record, self.id_field)

    async def add(self, record):
        self._storage[self._key(record)] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def find_by_id(self, record_id: UUID):
        record = self._storage.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def find_all(self) -> list:
        return [record.model_copy(deep=True) for record in self._storage.values()]

    async def update(self, record):
        key = self._key(record)
        if key not in self._storage:
            raise ValueError(f"{type(record).__name__} {key} not found")
        self._storage[key] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def update_fields(self, record_id: UUID, fields: Dict[str, Any]):
        existing = self._storage.get(record_id)
        if existing is None:
            return None
        # full validation, so a bad field never reaches the store
        updated = type(existing).model_validate({**existing.model_dump(), **fields})
        self._storage[record_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, record_id: UUID) -> bool:
        if record_id in self._storage:
            del self._storage[record_id]
            return True
        return False

    def _select(self, predicate) -> list:
        return [record.model_copy(deep=True) for record in self._storage.values() if predicate(record)]


class InMemoryReservationRepository(_InMemoryCollection, ReservationRepository):
    """In-memory implementation of ReservationRepository"""
    collection = "reservations"
    id_field = "reservation_id"

    async def find_by_room_id(self, room_id: UUID) -> List[Reservation]:
        return self._select(lambda r: r.room_id == room_id)


class InMemoryRoomRepository(_InMemoryCollection, RoomRepository):
    """In-memory implementation of RoomRepository"""
    collection = "rooms"
    id_field = "room_id"

    async def find_by_number(self, number: str) -> Optional[Room]:
        matches = self._select(lambda r: r.number == number)
        return matches[0] if matches else None


class InMemoryGuestRepository(_InMemoryCollection, GuestRepository):
    """In-memory implementation of GuestRepository"""
    collection = "guests"
    id_field = "guest_id"

    async def find_by_email(self, email: str) -> Optional[Guest]:
        matches = self._select(lambda g: g.email == email)
        return matches[0] if matches else None


class InMemoryHousekeepingTaskRepository(_InMemoryCollection, HousekeepingTaskRepository):
    """In-memory implementation of HousekeepingTaskRepository"""
    collection = "housekeeping_tasks"
    id_field = "task_id"

    async def find_by_room_id(self, room_id: UUID) -> List[HousekeepingTask]:
        return self._select(lambda t: t.room_id == room_id)


class InMemoryBillRepository(_InMemoryCollection, BillRepository):
    """In-memory implementation of BillRepository"""
    collection = "bills"
    id_field = "bill_id"


class InMemoryUnitOfWork(UnitOfWork):
    """Snapshot-and-restore unit of work over an InMemoryDatabase"""

    def __init__(self, database: InMemoryDatabase):
        self._database = database
        self._snapshot = None
        self.reservations = InMemoryReservationRepository(database)
        self.rooms = InMemoryRoomRepository(database)
        self.guests = InMemoryGuestRepository(database)
        self.housekeeping_tasks = InMemoryHousekeepingTaskRepository(database)
        self.bills = InMemoryBillRepository(database)

    async def begin(self) -> None:
        await self._database.lock.acquire()
        self._snapshot = self._database.snapshot()

    async def commit(self) -> None:
        if self._snapshot is None:
            return
        self._snapshot = None
        self._database.lock.release()

    async def rollback(self) -> None:
        if self._snapshot is None:
            return
        self._database.restore(self._snapshot)
        self._snapshot = None
        self._database.lock.release()
        logger.debug("Unit of work rolled back")
