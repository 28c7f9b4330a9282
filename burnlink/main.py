# burnlink/main.py

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from burnlink import config
from burnlink.db.base import async_engine
from burnlink.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from burnlink.observability.logger import configure_logging
from burnlink.observability.metrics import router as prometheus_router
from burnlink.routers.health import router as health_router
from burnlink.routers.messages import router as messages_router, templates
from burnlink.utils.logger import log_info
from burnlink.utils.telemetry import init_otel


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_info(f"Server started at http://{config.HOST}:{config.PORT}")
    yield
    log_info("Closing database engine...")
    await async_engine.dispose()
    log_info("Shutdown complete.")


configure_logging(config)

app = FastAPI(
    title="burnlink",
    description="Self-destructing messages readable by a single reader",
    version="1.0.0",
    lifespan=lifespan,
)

# Error handler should be outermost to catch all errors
app.add_middleware(ErrorHandlerMiddleware, debug=config.DEBUG)

setup_exception_handlers(app)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """404 nothing found: HTML for browsers, JSON otherwise."""
    if exc.status_code == 404 and "text/html" in request.headers.get("accept", ""):
        return templates.TemplateResponse(request, "404.html", {}, status_code=404)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "HTTP_ERROR", "message": str(exc.detail)}},
    )


# Health checks and metrics first: the message router owns "/{token}/"
app.include_router(health_router)
app.include_router(prometheus_router)
app.include_router(messages_router)

if os.path.isdir(config.STATIC_PATH):
    app.mount("/static", StaticFiles(directory=config.STATIC_PATH), name="static")


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    """Return empty response for favicon to prevent 404 errors."""
    return Response(status_code=204)


if config.settings.OTEL_ENABLED:
    init_otel(app=app, engine=async_engine)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("burnlink.main:app", host=config.HOST, port=config.PORT)
