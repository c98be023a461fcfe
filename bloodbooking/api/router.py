from __future__ import annotations

from fastapi import APIRouter

from bloodbooking.api.routes import booking

api_router = APIRouter()

api_router.include_router(booking.router, prefix="/booking", tags=["booking"])
