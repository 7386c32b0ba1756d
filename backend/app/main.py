from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from backend.app.core.config import settings
from backend.app.core.errors import StoreError
from backend.app.core.logging import setup_logging
from backend.app.api.api import api_router
from backend.app.api.deps import get_session_manager

app = FastAPI(title=settings.PROJECT_NAME)

@app.on_event("startup")
async def startup_event():
    for sink in setup_logging(settings.LOG_LEVEL, settings.LOG_FILE):
        logger.info(f"Logging to {sink}")
    manager = app.dependency_overrides.get(get_session_manager, get_session_manager)()
    manager.store.initialize()

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal storage error"})

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": "Gemini Relay API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
