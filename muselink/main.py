"""
Main FastAPI application for the MuseLink API.
Serves health, requests, unlocks, credits and metrics.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from muselink.core.config import settings
from muselink.core.errors import MuseLinkError, muselink_error_handler
from muselink.core.logging import configure_logging
from muselink.api.routes import credits, health, requests, unlocks
from muselink.utils.metrics import router as metrics_router


configure_logging()

app = FastAPI(
    title="MuseLink API",
    description="Marketplace backend: clients post performance requests, artists unlock contacts with credits",
    version="1.0.0",
)

app.add_exception_handler(MuseLinkError, muselink_error_handler)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(requests.router)
app.include_router(unlocks.router)
app.include_router(credits.router)
app.include_router(metrics_router)
