import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.middleware.cors import CORSMiddleware

from core.config_loader import settings
from core.logging_config import configure_logging

from availability.router import availability_router
from timeblock.router import timeblock_router
from scheduling.router import scheduling_router
from booking.router import booking_router
from sessions.router import session_router
from management.router import manage_router
import models_bootstrap

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {
        "name": "Scheduling",
        "description": "Offerable slots and tutor eligibility",
    },
    {
        "name": "Bookings",
        "description": "Single, recurring and series booking operations",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

app = FastAPI(openapi_tags=openapi_tags)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(availability_router, prefix="/api")
app.include_router(timeblock_router, prefix="/api")
app.include_router(scheduling_router, prefix="/api")
app.include_router(booking_router, prefix="/api")
app.include_router(session_router, prefix="/api")
app.include_router(manage_router, prefix="/api")


# lock timeouts and lost connections; never a booking conflict
@app.exception_handler(OperationalError)
def datastore_unavailable(request: Request, exc: OperationalError):
    logger.error("datastore error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=503, content={"detail": "datastore unavailable"})


@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
