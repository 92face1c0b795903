import logging

from fastapi import FastAPI

from config import build_cors, configure_logging, get_settings
from component_router import router as components_router
from middleware.request_id import RequestIDMiddleware

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger("main_app")

# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
app = FastAPI(title=settings.meta.app_name, version=settings.meta.sdk_version)
app = build_cors(settings)(app)
app.add_middleware(RequestIDMiddleware)
app.include_router(components_router)


@app.get("/health")
async def health():
    return {"status": "success", "environment": settings.meta.environment}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting {settings.meta.app_name} on port {settings.fastapi.port}")
    uvicorn.run(
        "main:app",
        host=settings.fastapi.host,
        port=settings.fastapi.port,
        reload=settings.fastapi.reload,
        workers=settings.fastapi.workers,
    )
