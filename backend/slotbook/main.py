from fastapi import FastAPI

from .logging_setup import configure_logging
from .redis_client import redis_client
from .routers import availability, bookings, checkout, internal, slots

configure_logging("slotbook")

app = FastAPI(title="Slotbook Availability API")

app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(checkout.router)
app.include_router(internal.router)
app.include_router(slots.router)


@app.get("/health")
def health():
    return {"redis": redis_client.ping() if redis_client is not None else None}
