import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from guardpost.api.deps import Capabilities
from guardpost.core.config import settings
from guardpost.core.database import AsyncSessionLocal, create_tables
from guardpost.core.local_state import get_local_state_store
from guardpost.api.v1.auth import router as auth_router
from guardpost.api.v1.announcements import router as announcements_router
from guardpost.api.v1.catalog import router as catalog_router
from guardpost.api.v1.violations import router as violations_router, evidence_router
from guardpost.api.v1.pending_docs import router as pending_docs_router
from guardpost.api.v1.breaches import router as breaches_router
from guardpost.api.v1.guards import router as guards_router
from guardpost.api.v1.preferences import router as preferences_router
from guardpost.services.tentative import MutationFailed
from guardpost.services.violation_service import negotiate_capabilities

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on start-up (SQLite / local development)
    await create_tables()
    async with AsyncSessionLocal() as db:
        await negotiate_capabilities(db, get_local_state_store())
    yield


_configure_logging()

app = FastAPI(
    title="Guardpost API",
    description="Guard violations, documentation and contractor breach tracking",
    version="1.0.0",
    lifespan=lifespan,
    # Swagger UI only in development; set DEBUG=false in production
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MutationFailed)
async def mutation_failed_handler(request: Request, exc: MutationFailed):
    return JSONResponse(status_code=500, content={"detail": exc.message})


API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(announcements_router, prefix=API_PREFIX)
app.include_router(catalog_router, prefix=API_PREFIX)
app.include_router(violations_router, prefix=API_PREFIX)
app.include_router(evidence_router, prefix=API_PREFIX)
app.include_router(pending_docs_router, prefix=API_PREFIX)
app.include_router(breaches_router, prefix=API_PREFIX)
app.include_router(guards_router, prefix=API_PREFIX)
app.include_router(preferences_router, prefix=API_PREFIX)


@app.get("/capabilities")
async def capabilities(caps: Capabilities):
    return {"voided_column": caps.voided_column}


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Guardpost API", "version": "1.0.0"}
