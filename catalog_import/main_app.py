#=================================================================
# catalog_import/main_app.py
# FastAPI application entry-point for the catalog import admin API.
# Run with: uvicorn catalog_import.main_app:app
#=================================================================

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalog_import.routes import router as api_router
from catalog_import.db import init_db
from catalog_import.logging_filters import configure_logging

# --- FastAPI instance ---
app = FastAPI(
    title="Catalog Import Admin",
    description="Runs POS / marketplace imports and category maintenance against the storefront DB.",
)

# --- Logging setup (console, INFO level) ---
configure_logging(logging.INFO)
logger = logging.getLogger("uvicorn.error")

app.include_router(api_router)  # /api/*

# --- Root endpoint ---
@app.get("/")
async def home():
    return {"status": "running", "service": "Catalog Import"}

# --- Global error handler (keeps full stack trace in logs) ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Request failed: {str(exc)}"},
    )

@app.on_event("startup")
async def _startup():
    # source key registry tables
    await init_db()
