import logging
from datetime import timedelta
from typing import List
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse,
    # Guests
    CreateGuestRequest, UpdateGuestRequest, GuestResponse,
    # Reservations
    CreateReservationRequest, UpdateReservationRequest, ReservationResponse,
    LifecycleResponse, MessageResponse, ErrorResponse,
    # Housekeeping
    CreateHousekeepingTaskRequest, UpdateHousekeepingTaskRequest, HousekeepingTaskResponse,
    # Billing
    CreateBillRequest, UpdateBillRequest, PayBillRequest, BillItemResponse, BillResponse,
    # Auth
    Token, UserResponse
)
from api.dependencies import get_current_active_user, operators_db, get_user
from api.errors import failure_message, register_exception_handlers
from infrastructure.config import APP_TITLE, LOG_LEVEL, CURRENCY, TAX_RATE, ACCESS_TOKEN_EXPIRE_MINUTES
from infrastructure.security import verify_password, create_access_token
from domain.auth import User
from domain.entities import ReservationDetails, HousekeepingTaskDetails, BillDetails

from application.services import (
    ReservationService, RoomService, GuestService, HousekeepingService, BillingService
)
from infrastructure.repositories.in_memory_repositories import InMemoryDatabase, InMemoryUnitOfWork

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_TITLE,
    description="Hotel back office: rooms, guests, reservations, housekeeping and billing",
    version="1.0.0"
)
register_exception_handlers(app)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

# Initialize storage
database = InMemoryDatabase()


def unit_of_work() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(database)


# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(unit_of_work)

def get_room_service() -> RoomService:
    return RoomService(unit_of_work)

def get_guest_service() -> GuestService:
    return GuestService(unit_of_work)

def get_housekeeping_service() -> HousekeepingService:
    return HousekeepingService(unit_of_work)

def get_billing_service() -> BillingService:
    return BillingService(unit_of_work, tax_rate=TAX_RATE)

# ============================================================================
# HEALTH
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(operators_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_all_rooms(
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all rooms"""
    with failure_message("Failed to fetch rooms"):
        rooms = await service.get_all_rooms()
    return [RoomResponse.model_validate(room) for room in rooms]

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, responses=ERROR_RESPONSES, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Add a room to inventory"""
    with failure_message("Failed to create room"):
        room = await service.create_room(
            number=request.number,
            price=request.price,
            floor=request.floor,
            room_type=request.room_type,
            amenities=request.amenities
        )
    return RoomResponse.model_validate(room)

@app.get("/api/rooms/{room_id}", response_model=RoomResponse, responses=ERROR_RESPONSES, tags=["Rooms"])
async def get_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by ID"""
    with failure_message("Failed to fetch room"):
        room = await service.get_room(room_id)
    return RoomResponse.model_validate(room)

@app.put("/api/rooms/{room_id}", response_model=RoomResponse, responses=ERROR_RESPONSES, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Edit room details or force its status"""
    with failure_message("Failed to update room"):
        room = await service.update_room(room_id, request.model_dump(exclude_unset=True))
    return RoomResponse.model_validate(room)

@app.delete("/api/rooms/{room_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Rooms"])
async def delete_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete a room without active reservations"""
    with failure_message("Failed to delete room"):
        await service.delete_room(room_id)
    return {"message": "Room deleted successfully"}

# ============================================================================
# GUEST ENDPOINTS
# ============================================================================

@app.get("/api/guests", response_model=List[GuestResponse], tags=["Guests"])
async def get_all_guests(
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all guests, newest first"""
    with failure_message("Failed to fetch guests"):
        guests = await service.get_all_guests()
    return [GuestResponse.model_validate(guest) for guest in guests]

@app.post("/api/guests", response_model=GuestResponse, status_code=201, responses=ERROR_RESPONSES, tags=["Guests"])
async def register_guest(
    request: CreateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Register a guest"""
    with failure_message("Failed to create guest"):
        profile = request.model_dump(exclude={"name", "email"})
        guest = await service.register_guest(request.name, request.email, **profile)
    return GuestResponse.model_validate(guest)

@app.get("/api/guests/{guest_id}", response_model=GuestResponse, responses=ERROR_RESPONSES, tags=["Guests"])
async def get_guest(
    guest_id: UUID,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get guest by ID"""
    with failure_message("Failed to fetch guest"):
        guest = await service.get_guest(guest_id)
    return GuestResponse.model_validate(guest)

@app.put("/api/guests/{guest_id}", response_model=GuestResponse, responses=ERROR_RESPONSES, tags=["Guests"])
async def update_guest(
    guest_id: UUID,
    request: UpdateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Edit guest profile"""
    with failure_message("Failed to update guest"):
        guest = await service.update_guest(guest_id, request.model_dump(exclude_unset=True))
    return GuestResponse.model_validate(guest)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all reservations with guest and room"""
    with failure_message("Failed to fetch reservations"):
        reservations = await service.get_all_reservations()
    return [_reservation_to_response(details) for details in reservations]

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, responses=ERROR_RESPONSES, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book a room"""
    with failure_message("Failed to create reservation"):
        details = await service.create_reservation(
            guest_id=request.guest_id,
            room_id=request.room_id,
            check_in_date=request.check_in_date,
            check_out_date=request.check_out_date,
            adults=request.adults,
            children=request.children,
            special_requests=request.special_requests
        )
    return _reservation_to_response(details)

@app.post("/api/reservations/check-in/{reservation_id}", response_model=LifecycleResponse, responses=ERROR_RESPONSES, tags=["Reservations"])
async def check_in(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check in a confirmed reservation"""
    with failure_message("Failed to process check-in"):
        details = await service.check_in(reservation_id)
    return {"message": "Check-in successful", "reservation": _reservation_to_response(details)}

@app.post("/api/reservations/check-out/{reservation_id}", response_model=LifecycleResponse, responses=ERROR_RESPONSES, tags=["Reservations"])
async def check_out(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check out a checked-in reservation and queue the room for cleaning"""
    with failure_message("Failed to process check-out"):
        details = await service.check_out(reservation_id)
    return {"message": "Check-out successful", "reservation": _reservation_to_response(details)}

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, responses=ERROR_RESPONSES, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    with failure_message("Failed to fetch reservation"):
        details = await service.get_reservation(reservation_id)
    return _reservation_to_response(details)

@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, responses=ERROR_RESPONSES, tags=["Reservations"])
async def update_reservation(
    reservation_id: UUID,
    request: UpdateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Administrative correction; does not touch room status or guest totals"""
    with failure_message("Failed to update reservation"):
        details = await service.update_reservation(reservation_id, request.model_dump(exclude_unset=True))
    return _reservation_to_response(details)

@app.delete("/api/reservations/{reservation_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Reservations"])
async def delete_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete a reservation in any status"""
    with failure_message("Failed to delete reservation"):
        await service.delete_reservation(reservation_id)
    return {"message": "Reservation deleted successfully"}

# ============================================================================
# HOUSEKEEPING ENDPOINTS
# ============================================================================

@app.get("/api/housekeeping", response_model=List[HousekeepingTaskResponse], tags=["Housekeeping"])
async def get_all_tasks(
    service: HousekeepingService = Depends(get_housekeeping_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all housekeeping tasks, newest first"""
    with failure_message("Failed to fetch housekeeping tasks"):
        tasks = await service.get_all_tasks()
    return [_task_to_response(details) for details in tasks]

@app.post("/api/housekeeping", response_model=HousekeepingTaskResponse, status_code=201, responses=ERROR_RESPONSES, tags=["Housekeeping"])
async def create_task(
    request: CreateHousekeepingTaskRequest,
    service: HousekeepingService = Depends(get_housekeeping_service),
    current_user: User = Depends(get_current_active_user)
):
    """Raise a housekeeping task for a room"""
    with failure_message("Failed to create housekeeping task"):
        details = await service.create_task(
            room_id=request.room_id,
            task_type=request.task_type,
            priority=request.priority,
            notes=request.notes,
            assigned_to=request.assigned_to,
            estimated_duration=request.estimated_duration
        )
    return _task_to_response(details)

@app.get("/api/housekeeping/{task_id}", response_model=HousekeepingTaskResponse, responses=ERROR_RESPONSES, tags=["Housekeeping"])
async def get_task(
    task_id: UUID,
    service: HousekeepingService = Depends(get_housekeeping_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get housekeeping task by ID"""
    with failure_message("Failed to fetch housekeeping task"):
        details = await service.get_task(task_id)
    return _task_to_response(details)

@app.put("/api/housekeeping/{task_id}", response_model=HousekeepingTaskResponse, responses=ERROR_RESPONSES, tags=["Housekeeping"])
async def update_task(
    task_id: UUID,
    request: UpdateHousekeepingTaskRequest,
    service: HousekeepingService = Depends(get_housekeeping_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update task status, assignee or notes"""
    with failure_message("Failed to update housekeeping task"):
        details = await service.update_task(
            task_id=task_id,
            status=request.status,
            assigned_to=request.assigned_to,
            notes=request.notes,
            actual_duration=request.actual_duration
        )
    return _task_to_response(details)

@app.delete("/api/housekeeping/{task_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Housekeeping"])
async def delete_task(
    task_id: UUID,
    service: HousekeepingService = Depends(get_housekeeping_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete housekeeping task"""
    with failure_message("Failed to delete housekeeping task"):
        await service.delete_task(task_id)
    return {"message": "Housekeeping task deleted successfully"}

# ============================================================================
# BILLING ENDPOINTS
# ============================================================================

@app.get("/api/bills", response_model=List[BillResponse], tags=["Billing"])
async def get_all_bills(
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all bills, newest first"""
    with failure_message("Failed to fetch bills"):
        bills = await service.get_all_bills()
    return [_bill_to_response(details) for details in bills]

@app.post("/api/bills", response_model=BillResponse, status_code=201, responses=ERROR_RESPONSES, tags=["Billing"])
async def create_bill(
    request: CreateBillRequest,
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Raise a bill against a reservation"""
    with failure_message("Failed to create bill"):
        details = await service.create_bill(
            reservation_id=request.reservation_id,
            items=[item.model_dump() for item in request.items],
            due_date=request.due_date,
            notes=request.notes
        )
    return _bill_to_response(details)

@app.get("/api/bills/{bill_id}", response_model=BillResponse, responses=ERROR_RESPONSES, tags=["Billing"])
async def get_bill(
    bill_id: UUID,
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get bill by ID"""
    with failure_message("Failed to fetch bill"):
        details = await service.get_bill(bill_id)
    return _bill_to_response(details)

@app.put("/api/bills/{bill_id}", response_model=BillResponse, responses=ERROR_RESPONSES, tags=["Billing"])
async def update_bill(
    bill_id: UUID,
    request: UpdateBillRequest,
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Edit due date or notes, or reprice a pending bill"""
    with failure_message("Failed to update bill"):
        details = await service.update_bill(bill_id, request.model_dump(exclude_unset=True))
    return _bill_to_response(details)

@app.post("/api/bills/{bill_id}/pay", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Billing"])
async def pay_bill(
    bill_id: UUID,
    request: PayBillRequest,
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Settle a pending bill"""
    with failure_message("Failed to process payment"):
        await service.pay_bill(bill_id, request.payment_method, request.notes)
    return {"message": "Payment processed successfully"}

@app.delete("/api/bills/{bill_id}", response_model=MessageResponse, responses=ERROR_RESPONSES, tags=["Billing"])
async def delete_bill(
    bill_id: UUID,
    service: BillingService = Depends(get_billing_service),
    current_user: User = Depends(get_current_active_user)
):
    """Delete bill"""
    with failure_message("Failed to delete bill"):
        await service.delete_bill(bill_id)
    return {"message": "Bill deleted successfully"}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(details: ReservationDetails) -> ReservationResponse:
    """Convert joined reservation to ReservationResponse"""
    reservation = details.reservation
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        guest_id=reservation.guest_id,
        room_id=reservation.room_id,
        check_in_date=reservation.check_in_date,
        check_out_date=reservation.check_out_date,
        adults=reservation.adults,
        children=reservation.children,
        status=reservation.status,
        total_amount=reservation.total_amount,
        currency=CURRENCY,
        special_requests=reservation.special_requests,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        guest=GuestResponse.model_validate(details.guest),
        room=RoomResponse.model_validate(details.room)
    )

def _task_to_response(details: HousekeepingTaskDetails) -> HousekeepingTaskResponse:
    """Convert housekeeping task to HousekeepingTaskResponse"""
    task = details.task
    return HousekeepingTaskResponse(
        task_id=task.task_id,
        room_id=task.room_id,
        task_type=task.task_type,
        status=task.status,
        priority=task.priority,
        notes=task.notes,
        assigned_to=task.assigned_to,
        estimated_duration=task.estimated_duration,
        actual_duration=task.actual_duration,
        started_at=task.started_at,
        completed_at=task.completed_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
        room_number=details.room.number if details.room else None
    )

def _bill_to_response(details: BillDetails) -> BillResponse:
    """Convert joined bill to BillResponse"""
    bill = details.bill
    return BillResponse(
        bill_id=bill.bill_id,
        bill_number=bill.bill_number,
        reservation_id=bill.reservation_id,
        guest_id=bill.guest_id,
        room_id=bill.room_id,
        items=[
            BillItemResponse(
                description=item.description,
                unit_price=item.unit_price,
                quantity=item.quantity,
                total=item.total
            )
            for item in bill.items
        ],
        subtotal=bill.subtotal,
        tax=bill.tax,
        total_amount=bill.total_amount,
        currency=CURRENCY,
        status=bill.status,
        due_date=bill.due_date,
        notes=bill.notes,
        payment_method=bill.payment_method,
        paid_at=bill.paid_at,
        created_at=bill.created_at,
        updated_at=bill.updated_at,
        guest_name=details.guest.name,
        room_number=details.room.number
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
