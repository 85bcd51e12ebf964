from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from server.aggregate import Period, aggregate
from server.config import Settings
from server.logging_config import setup_logging
from server.models import CountPayload
from server.store import SqliteThripsStore


def describe_validation_error(exc: RequestValidationError) -> str:
    missing = [str(e["loc"][-1]) for e in exc.errors() if e.get("type") == "missing"]
    if missing:
        return "Missing required fields: " + ", ".join(missing)
    parts = []
    for e in exc.errors():
        field = ".".join(str(p) for p in e.get("loc", ()) if p != "body") or "body"
        parts.append(f"{field}: {e.get('msg', 'invalid')}")
    return "Invalid fields: " + "; ".join(parts)


def create_app(store=None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    tz = settings.tz

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store.init_db()
        logger.info("Thrips server ready (db={}, tz={})", app.state.store.describe(), settings.report_tz)
        yield

    app = FastAPI(title="Thrips Counter", lifespan=lifespan)
    app.state.store = store if store is not None else SqliteThripsStore(settings.db_path)
    app.state.settings = settings

    def get_store(request: Request):
        return request.app.state.store

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        message = describe_validation_error(exc)
        logger.info("Rejected {} {}: {}", request.method, request.url.path, message)
        return JSONResponse({"error": message}, status_code=400)

    # ---------- API ----------
    @app.get("/thrips")
    def read_thrips(period: Optional[str] = None, store=Depends(get_store)):
        selected = Period.parse(period)
        try:
            buckets = aggregate(store.fetch_all(), selected, tz=tz)
        # StoreError and anything unexpected surface as 500 with the message
        except Exception as exc:
            logger.exception("Reading thrips counts failed")
            return JSONResponse({"error": str(exc)}, status_code=500)

        return [b.to_row() for b in buckets]

    @app.post("/thrips", status_code=201)
    def create_thrips(payload: CountPayload, store=Depends(get_store)):
        try:
            record = store.insert(payload.tea, payload.other)
        except Exception as exc:
            logger.exception("Saving thrips count failed")
            return JSONResponse({"error": str(exc)}, status_code=500)

        logger.info("Saved thrips count id={} tea={} other={}", record.id, record.tea, record.other)
        return JSONResponse(
            {"message": "Data saved successfully", "data": record.to_json()},
            status_code=201,
        )

    @app.get("/health")
    def health(store=Depends(get_store)):
        return {"ok": True, "db": store.describe()}

    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn server.server:build_app --factory``."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, serialize=settings.log_json)
    return create_app(settings=settings)
