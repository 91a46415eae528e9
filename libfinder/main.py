"""
Main application entry point.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from libfinder.api.v1.account_endpoints import router as account_router
from libfinder.api.v1.book_endpoints import router as book_router
from libfinder.api.v1.dependencies import get_catalog_store
from libfinder.api.v1.holder_endpoints import router as holder_router
from libfinder.api.v1.library_endpoints import router as library_router
from libfinder.domain.errors import LibfinderError

logger = logging.getLogger(__name__)

REFRESH_CATALOG_ON_STARTUP = os.getenv("REFRESH_CATALOG_ON_STARTUP", "1") == "1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the library catalog once before serving."""
    if REFRESH_CATALOG_ON_STARTUP:
        try:
            await get_catalog_store().refresh()
        except LibfinderError as e:
            # serve with an empty catalog; POST /libraries/refresh retries
            logger.error("Initial catalog refresh failed: %s", e)
    yield


app = FastAPI(
    title="libfinder API",
    description="Book metadata and library holdings from several catalogs behind one API.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Include API routers
app.include_router(book_router, prefix="/api/v1", tags=["books"])
app.include_router(library_router, prefix="/api/v1", tags=["libraries"])
app.include_router(holder_router, prefix="/api/v1", tags=["holders"])
app.include_router(account_router, prefix="/api/v1", tags=["accounts"])


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the libfinder API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("libfinder.main:app", host="0.0.0.0", port=port)
