"""
FastAPI application entry point for the Sales Planner API.

Configures logging and CORS, manages the database pool lifecycle and
registers the API routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sales_planner.api import api_router
from sales_planner.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Initialize database connection pool
    On shutdown:
        - Close database connection pool
    """
    logger.info("Sales Planner API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except (asyncpg.PostgresError, OSError) as e:
        # Startup continues; the pool is created lazily on first request
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Sales Planner API shutting down")
    await close_db()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="Sales Planner API",
    version=API_VERSION,
    description=(
        "Planning and diagnostics engine for a sales team's daily activity log: "
        "multi-horizon rate resolution, reverse-funnel sizing, remaining-month "
        "quotas, intraday pacing and rule-based bottleneck diagnosis."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Sales Planner API",
        "version": API_VERSION,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sales_planner.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
