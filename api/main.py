import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core import schema
from core.db import Database
from core.log import configure_logging
from core.settings import load_settings
from markers.repository import MarkerStore
from markers.router import router as markers_router
from markers.service import MarkerOperationError, invalid_body_error
from web import ASSETS_DIR, PUBLIC_DIR

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    database = Database(settings.connect_kwargs(), max_size=settings.db_pool_size)
    # Raises SchemaError (and aborts startup) when the schema can't be ensured.
    await schema.initialize(settings, database)
    app.state.marker_store = MarkerStore(database)
    try:
        yield
    finally:
        app.state.marker_store = None
        await database.close()


app = FastAPI(title="Video Markers API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(exc: MarkerOperationError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": exc.message, "error": exc.error})


@app.exception_handler(MarkerOperationError)
async def marker_operation_error_handler(_: Request, exc: MarkerOperationError) -> JSONResponse:
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Marker writes report bad bodies with the same 500 shape as store failures.
    if request.url.path.startswith("/markers"):
        error = invalid_body_error(request.method, list(exc.errors()))
        if error is not None:
            logger.warning(
                "marker_body_invalid method=%s path=%s error=%s",
                request.method,
                request.url.path,
                error.error,
            )
            return _error_response(error)
    return await request_validation_exception_handler(request, exc)


app.include_router(markers_router, tags=["markers"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


# Static mounts go last so they never shadow the API routes. StaticFiles
# raises at import time when a directory is missing from the install.
app.mount("/assets", StaticFiles(directory=ASSETS_DIR), name="assets")
app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


def run() -> None:
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_config=None)


if __name__ == "__main__":
    run()
