from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI
from travelcrm.routers import lead, public, settings
from travelcrm.db.session import init_models

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if os.getenv("AUTO_CREATE_TABLES", "0") == "1":
        await init_models()
    yield


app = FastAPI(
    title="Travel CRM Lead Distribution",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Register Routers ---
app.include_router(public.router)     # /api/v1/inquiries, /api/v1/bookings/*
app.include_router(lead.router)       # /api/v1/leads/*
app.include_router(settings.router)   # /api/v1/settings/*


# --- Root health check ---
@app.get("/")
async def root():
    return {"message": "Travel CRM backend is running"}
