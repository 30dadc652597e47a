import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api import layers
from core.config import ALLOWED_CORS_ORIGINS, LAYER_SCHEMA, RUN_MIGRATIONS_ON_STARTUP
from db import session as db_session
from services.layer_store import LayerOffsetError
from services.migrations import run_migrations
from services.tiles import layer_schema_exists, list_layer_tables

# Configure logging with environment variable support
# Set LOG_LEVEL=WARNING in production to reduce noise, DEBUG for verbose output
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db_session.engine is None:
        logger.warning("No database configured; layer endpoints will be unavailable")
    else:
        await db_session.wait_for_db()
        if RUN_MIGRATIONS_ON_STARTUP:
            await run_migrations()
        async with db_session.AsyncSessionLocal() as session:
            if await layer_schema_exists(session, LAYER_SCHEMA):
                sources = await list_layer_tables(session, LAYER_SCHEMA)
                logger.info(
                    "Available sources in schema %s: %s",
                    LAYER_SCHEMA,
                    ", ".join(sources) or "none",
                )
            else:
                # Migrations only create gridwalk_layer_data
                logger.warning(
                    "Layer schema %s does not exist; tile requests will return 404",
                    LAYER_SCHEMA,
                )
    yield
    if db_session.engine is not None:
        await db_session.engine.dispose()


tags_metadata = [
    {
        "name": "layers",
        "description": "Registry of uploaded geospatial layers and their vector tiles.",
    },
]

app = FastAPI(
    title="Gridwalk API",
    description="Layer registry and vector tile service",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# CORS
if ALLOWED_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    # Fallback: allow all origins but disable credentials to satisfy CORS spec
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(layers.router)


@app.get("/")
async def root():
    return {"message": "Gridwalk API is running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "Gridwalk API is running"}


# Exception handlers


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_422(request: Request, exc: RequestValidationError):
    exc_str = f"{exc}".replace("\n", " ").replace("   ", " ")
    logging.error(f"{request}: {exc_str}")
    content = {"status_code": 10422, "message": exc_str, "data": None}
    return JSONResponse(content=content, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


@app.exception_handler(LayerOffsetError)
async def layer_offset_error_handler_422(request: Request, exc: LayerOffsetError):
    logging.error(f"{request.method} {request.url.path}: {exc}")
    content = {"status_code": 10422, "message": str(exc), "data": None}
    return JSONResponse(content=content, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


@app.exception_handler(IntegrityError)
async def integrity_error_handler_409(request: Request, exc: IntegrityError):
    exc_str = f"{exc.orig}".replace("\n", " ")
    logging.error(f"{request.method} {request.url.path}: {exc_str}")
    content = {"status_code": 10409, "message": exc_str, "data": None}
    return JSONResponse(content=content, status_code=status.HTTP_409_CONFLICT)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3001")), reload=True)
