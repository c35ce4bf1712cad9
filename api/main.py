import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contents import router as contents_router
from core import bootstrap, db
from core import router as core_router
from site_settings import router as site_settings_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process, then make sure the schema exists.
    try:
        await db.init_pool()
    except Exception:
        logger.exception("db_pool_init_failed")
    else:
        await bootstrap.bootstrap_on_startup()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Allow local frontend dev server to call this API from the browser.
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


@app.exception_handler(db.ConnectionNotInitializedError)
async def connection_not_initialized_handler(_: Request, exc: db.ConnectionNotInitializedError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Database is not available."})


@app.exception_handler(db.PersistenceError)
async def persistence_error_handler(_: Request, exc: db.PersistenceError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": "Database operation failed."})


app.include_router(contents_router.router, tags=["contents"])
app.include_router(site_settings_router.router, tags=["settings"])
app.include_router(core_router.router, tags=["bootstrap"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "database": db.is_ready(), "schema": bootstrap.schema_ready()}


@app.get("/")
def root() -> dict:
    return {"message": "omateshare api"}
