import logging
import time

from fastapi import FastAPI

from favicon_api.routes import icons

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Favicon API")

# Include routers
app.include_router(icons.router)


# Log requests and responses
@app.middleware("http")
async def log_requests(request, call_next):
    start = time.perf_counter()
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Response: {response.status_code} ({elapsed_ms:.0f}ms)")
    return response
