import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from cafe_pos.core.db import init_db, close_db
from cafe_pos.api.v1.orders import router as orders_router
from cafe_pos.api.v1.catalog import menu_router, ingredients_router
from cafe_pos.api.v1.shifts import router as shifts_router
from cafe_pos.api.v1.reports import logs_router, reports_router
from cafe_pos.api.v1.users import router as users_router
from cafe_pos.core.config import LOG_FORMAT, LOG_LEVEL, PROJECT_NAME, VERSION
from cafe_pos.core.exception_handlers import setup_exception_handlers

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info("Starting %s v%s...", PROJECT_NAME, VERSION)
    await init_db() # Connect to DB and generate schemas
    yield
    await close_db()
    log.info("%s stopped.", PROJECT_NAME)

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(menu_router, prefix="/api/v1/menu", tags=["Menu"])
app.include_router(ingredients_router, prefix="/api/v1/ingredients", tags=["Warehouse"])
app.include_router(shifts_router, prefix="/api/v1/shifts", tags=["Schedule"])
app.include_router(logs_router, prefix="/api/v1/logs", tags=["Audit Log"])
app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(users_router, prefix="/api/v1/users", tags=["Staff"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
