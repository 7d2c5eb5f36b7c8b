from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse
from petfunny.core.config import settings
from petfunny.core.errors import BookingRejected, NotFoundError, StorageError
from petfunny.core.security import verify_admin_token
from petfunny.api import bookings, opening_hours, catalog
from petfunny.core.logger import setup_logging, logger
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting PetFunny Admin backend")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

@app.exception_handler(BookingRejected)
async def booking_rejected_handler(request: Request, exc: BookingRejected):
    return JSONResponse(status_code=400, content={"error": exc.reason})

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.warning(f"⚠️ Storage failure on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content={"error": exc.message, "retryable": True})

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error"}
    )

# Include routers
admin_only = [Depends(verify_admin_token)]
app.include_router(bookings.router, prefix=settings.API_PREFIX, tags=["Bookings"], dependencies=admin_only)
app.include_router(opening_hours.router, prefix=settings.API_PREFIX, tags=["Opening hours"], dependencies=admin_only)
app.include_router(catalog.router, prefix=settings.API_PREFIX, tags=["Catalog"], dependencies=admin_only)

@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("petfunny.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
