# main.py - FastAPI application entry point
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from routes import map_routes
from routes import notification_routes
from routes import report_routes
from services.assignment import AssignmentCoordinator
from services.cloudinary_client import CloudinaryStorage
from services.database import Database
from services.errors import CivicError
from services.firebase_client import get_firestore_client
from services.maps import MapRegistry
from services.notifier import (
    DatabaseNotificationSink,
    FirestoreNotificationSink,
    NotificationEmitter,
    NotificationInbox,
)
from services.report_store import ReportStore
from services.resolution import ResolutionPipeline
from services.vote_ledger import VoteLedger

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Builds the core services once per process and shares them through app.state
@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database(config.DATABASE_PATH, busy_timeout=config.DB_BUSY_TIMEOUT)
    await db.connect()

    sinks = [DatabaseNotificationSink(db)]
    firestore_client = get_firestore_client()
    if firestore_client is not None:
        sinks.append(FirestoreNotificationSink(firestore_client))
    notifier = NotificationEmitter(sinks, admin_ids=config.ADMIN_USER_IDS)

    store = ReportStore(db)
    maps = MapRegistry(db, cache_ttl=config.MAP_FEED_CACHE_TTL)

    app.state.db = db
    app.state.report_store = store
    app.state.vote_ledger = VoteLedger(store, notifier, threshold=config.ESCALATION_THRESHOLD)
    app.state.assignment = AssignmentCoordinator(store, notifier, maps)
    app.state.resolution = ResolutionPipeline(store, notifier)
    app.state.inbox = NotificationInbox(db)
    app.state.maps = maps
    app.state.storage = CloudinaryStorage()

    logger.info("CivicWatch started (escalation threshold %d)", config.ESCALATION_THRESHOLD)
    yield
    await db.close()


app = FastAPI(
    title="CivicWatch API",
    description="CivicWatch backend: civic reports filed by citizens, escalated by community votes, resolved by municipal workers and confirmed by administrators.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Business rule failures become client errors with a stable code
@app.exception_handler(CivicError)
async def civic_error_handler(request: Request, exc: CivicError):
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "code": "validation_error"},
    )


app.include_router(report_routes.router, prefix="/reports", tags=["reports"])
app.include_router(
    notification_routes.router, prefix="/notifications", tags=["notifications"]
)
app.include_router(map_routes.router, prefix="/maps", tags=["maps"])


# Health check endpoint
@app.get("/")
async def root():
    return {"message": "CivicWatch backend running"}
