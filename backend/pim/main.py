"""
PIM Platform - Backend API
Product information management with GS1 Brasil integration
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pim.api import auth, gs1, products
from pim.core.auth import require_session
from pim.core.config import settings
from pim.core.database import get_db_connection_dict_with_retry
from pim.core.exceptions import GS1Error

logging.basicConfig(
    level=logging.DEBUG if settings.API_DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https://.*\.vercel\.app",  # Allow all Vercel preview/production deployments
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.add_exception_handler(GS1Error, gs1.gs1_error_handler)

# Include API routers
app.include_router(
    products.router, prefix="/api/v1/products", tags=["Products"],
    dependencies=[Depends(require_session)]
)
app.include_router(
    gs1.router, prefix="/api/v1/gs1", tags=["GS1"],
    dependencies=[Depends(require_session)]
)
app.include_router(auth.router)


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "PIM API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint - reports the record store and GS1 mode"""
    start_time = time.time()

    if not settings.DATABASE_URL:
        store = {"backend": "local", "status": "ok", "path": settings.LOCAL_STORE_PATH}
    else:
        store = {"backend": "postgres", "status": "unknown", "latency_ms": None, "error": None}
        try:
            # Minimal retry (fast check)
            conn = get_db_connection_dict_with_retry(max_retries=1, retry_delay=0.5)
            cursor = conn.cursor()

            db_start = time.time()
            cursor.execute("SELECT 1")
            cursor.fetchone()
            store["latency_ms"] = round((time.time() - db_start) * 1000, 2)

            cursor.close()
            conn.close()
            store["status"] = "connected"
        except Exception as e:
            store["status"] = "disconnected"
            store["error"] = str(e)

    status = "healthy" if store["status"] in ("ok", "connected") else "degraded"

    return {
        "status": status,
        "service": "pim-api",
        "version": settings.API_VERSION,
        "store": store,
        "gs1_mode": settings.GS1_MODE,
        "total_latency_ms": round((time.time() - start_time) * 1000, 2)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("pim.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)
