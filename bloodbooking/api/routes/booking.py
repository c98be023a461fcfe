from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bloodbooking.core.deps import get_booking_service
from bloodbooking.schemas.booking import BookingSummaryResponse, ReservationCreate, ReservationCreated
from bloodbooking.services.booking_service import BookingService

router = APIRouter()


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@router.get("")
def booking_query(type: str = "", token: str = "", service: BookingService = Depends(get_booking_service)):
    """Query-classified read/transition endpoint used by the front end.

    type=availability | summary | confirm | cancel
    """
    if not type:
        return _error("缺少 type")

    if type == "availability":
        return service.compute_availability()

    if type in ("summary", "confirm", "cancel"):
        if not token:
            return _error("缺少 token")
        if type == "summary":
            return BookingSummaryResponse(data=service.get_summary(token))
        if type == "confirm":
            return service.confirm(token)
        return service.cancel(token)

    return _error("未知的請求類型")


@router.post("", response_model=ReservationCreated)
def create_reservation(payload: ReservationCreate, service: BookingService = Depends(get_booking_service)):
    record = service.reserve(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        timeslot=payload.timeslot,
        note=payload.note,
    )
    return ReservationCreated(id=record.id)
