from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from app.database import Base, engine
from fastapi.middleware.cors import CORSMiddleware
from app.errors import BookingError, booking_error_handler, validation_error_handler
from app.middleware import add_request_id_and_process_time
from app.models import (  # noqa: F401  (registers every table on Base.metadata)
    booking_model,
    car_model,
    location_model,
    notification_model,
    review_model,
    token_blacklist,
    user_model,
)
from app.routes.user_route import user_router
from app.routes.booking_route import booking_router
from app.routes.support_route import support_router
from app.routes.car_route import car_router
from app.routes.location_route import location_router
from app.routes.review_route import feedback_router
from app.routes.notification_route import notification_router


Base.metadata.create_all(bind=engine)
app = FastAPI(
    title="RentalBEE API",
    version="1.0.0",
    description="API for RentalBEE, a car rental platform: browse cars, book them for a time window, "
                "manage the booking lifecycle and leave feedback.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(add_request_id_and_process_time)
app.add_exception_handler(BookingError, booking_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


@app.get("/", status_code=200)
async def home():
    return {"message": "Welcome to RentalBEE REST API"}


app.include_router(user_router, tags=["Users"])
app.include_router(booking_router, tags=["Bookings"])
app.include_router(support_router, tags=["Support"])
app.include_router(car_router, tags=["Cars"])
app.include_router(location_router, tags=["Locations"])
app.include_router(feedback_router, tags=["Feedbacks"])
app.include_router(notification_router, tags=["Notifications"])
