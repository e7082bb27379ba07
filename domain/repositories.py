"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from uuid import UUID

from domain.entities import Reservation, Room, Guest, HousekeepingTask, Bill


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        """Insert reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_room_id(self, room_id: UUID) -> List[Reservation]:
        """Find reservations booked against a room"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Persist the whole reservation"""
        pass

    @abstractmethod
    async def update_fields(self, reservation_id: UUID, fields: Dict[str, Any]) -> Optional[Reservation]:
        """Set the given fields and return the updated reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        pass


class RoomRepository(ABC):
    """Repository interface for Room"""

    @abstractmethod
    async def add(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_number(self, number: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def update_fields(self, room_id: UUID, fields: Dict[str, Any]) -> Optional[Room]:
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        pass


class GuestRepository(ABC):
    """Repository interface for Guest"""

    @abstractmethod
    async def add(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Guest]:
        pass

    @abstractmethod
    async def update(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def update_fields(self, guest_id: UUID, fields: Dict[str, Any]) -> Optional[Guest]:
        pass


class HousekeepingTaskRepository(ABC):
    """Repository interface for HousekeepingTask"""

    @abstractmethod
    async def add(self, task: HousekeepingTask) -> HousekeepingTask:
        pass

    @abstractmethod
    async def find_by_id(self, task_id: UUID) -> Optional[HousekeepingTask]:
        pass

    @abstractmethod
    async def find_by_room_id(self, room_id: UUID) -> List[HousekeepingTask]:
        pass

    @abstractmethod
    async def find_all(self) -> List[HousekeepingTask]:
        pass

    @abstractmethod
    async def update(self, task: HousekeepingTask) -> HousekeepingTask:
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        pass


class BillRepository(ABC):
    """Repository interface for Bill"""

    @abstractmethod
    async def add(self, bill: Bill) -> Bill:
        pass

    @abstractmethod
    async def find_by_id(self, bill_id: UUID) -> Optional[Bill]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Bill]:
        pass

    @abstractmethod
    async def update(self, bill: Bill) -> Bill:
        pass

    @abstractmethod
    async def delete(self, bill_id: UUID) -> bool:
        pass


class UnitOfWork(ABC):
    """Atomic multi-record write boundary provided by the store.

    Writes made through the repositories below between ``begin`` and
    ``commit`` become visible together; ``rollback`` discards all of them.
    Used as ``async with uow:`` the unit begins on entry and rolls back on
    exit unless ``commit`` was called.
    """

    reservations: ReservationRepository
    rooms: RoomRepository
    guests: GuestRepository
    housekeeping_tasks: HousekeepingTaskRepository
    bills: BillRepository

    @abstractmethod
    async def begin(self) -> None:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass

    async def __aenter__(self) -> "UnitOfWork":
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # no-op when commit already ran
        await self.rollback()
