# snfoods/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from snfoods.core.config import get_settings
from snfoods.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from snfoods.models import profile as _profile_models  # noqa: F401
from snfoods.models import account as _account_models  # noqa: F401
from snfoods.models import product as _product_models  # noqa: F401
from snfoods.models import order as _order_models  # noqa: F401

# Routers
from snfoods.routers.users import router as users_router
from snfoods.routers.accounts import router as accounts_router
from snfoods.routers.products import router as catalog_router
from snfoods.routers.orders import router as orders_router
from snfoods.routers.notifications import router as notifications_router
from snfoods.routers.admin_stats import router as admin_stats_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to Supabase Postgres...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(accounts_router, prefix=settings.API_V1_STR)
app.include_router(catalog_router, prefix=settings.API_V1_STR)
app.include_router(orders_router, prefix=settings.API_V1_STR)
app.include_router(notifications_router, prefix=settings.API_V1_STR)
app.include_router(admin_stats_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "snfoods-orders"}
