from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_admin.core.config import settings
from catalog_admin.core.logging import get_logger, setup_logging
from catalog_admin.api.routes import health, products

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

# CORS configuration
allowed_origins = ["http://localhost:5173", "http://localhost:8080", "http://localhost:3000"]
if settings.ALLOWED_ORIGINS and settings.ALLOWED_ORIGINS != "*":
    allowed_origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",")] + allowed_origins
elif settings.ALLOWED_ORIGINS == "*":
    allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health, tags=["Health"])
app.include_router(products, prefix=f"{settings.API_V1_STR}/admin/products", tags=["AdminProducts"])


@app.on_event("startup")
async def startup_event():
    """Startup event handler."""
    logger.info("%s is starting up (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    logger.info("%s is shutting down", settings.PROJECT_NAME)
