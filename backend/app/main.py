from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.core.database import connect_to_catalog, close_catalog, get_catalog
from app.api.routes import products

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for the product catalog - listings with facets, pricing, installments and seller reputation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Load the catalog on startup."""
    logger.info("Starting up catalog backend...")
    await connect_to_catalog()
    logger.info("Catalog backend started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Release the catalog on shutdown."""
    logger.info("Shutting down catalog backend...")
    await close_catalog()
    logger.info("Catalog backend shut down successfully")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    catalog = get_catalog()
    return {
        "status": "healthy" if catalog.is_loaded() else "loading",
        "service": "catalog-backend",
        "version": "1.0.0",
        "catalogLoaded": catalog.is_loaded(),
        "itemCount": catalog.item_count()
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "description": "Catalog Backend API",
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(products.router, prefix=f"{settings.API_V1_PREFIX}/products", tags=["Products"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
