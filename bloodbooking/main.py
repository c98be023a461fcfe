from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bloodbooking.api.router import api_router
from bloodbooking.core.config import get_settings
from bloodbooking.core.errors import BookingError


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

# Body field -> message returned when the request body fails to parse
FIELD_MESSAGES = {
    "name": "姓名格式不正確",
    "email": "Email 格式不正確，請重新輸入",
    "phone": "電話格式不正確",
    "timeslot": "時段無效，請重新選擇",
    "note": "備註格式不正確",
}


def validation_message(errors) -> str:
    for err in errors:
        loc = err.get("loc") or ()
        if len(loc) >= 2 and loc[0] == "body" and loc[1] in FIELD_MESSAGES:
            return FIELD_MESSAGES[loc[1]]
    return "資料格式不正確"


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)

    # The booking front end is served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.http_status, content={"status": "error", "message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"status": "error", "message": validation_message(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} - Error: {exc}")
        return JSONResponse(status_code=500, content={"status": "error", "message": "系統錯誤，請稍後再試。"})

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
