from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from trackplan import __version__
from trackplan.api.catalog import router as catalog_router
from trackplan.api.events import router as events_router
from trackplan.config import get_settings
from trackplan.errors import TrackingPlanError
from trackplan.infrastructure import db as _db
from trackplan.infrastructure.log_setup import configure_logging
import trackplan.models.tables  # noqa: F401  (register mappers on Base.metadata)
import logging
import json
import uuid

app = FastAPI(title="Tracking Plan Consistency API", version=__version__)
app.include_router(events_router)
app.include_router(catalog_router)


@app.middleware("http")
async def correlation_id(request: Request, call_next):
    request.state.correlation_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.correlation_id
    return response


@app.exception_handler(TrackingPlanError)
async def tracking_plan_error_handler(request: Request, exc: TrackingPlanError):
    logging.getLogger("app").info(json.dumps({
        "event": "catalog_error",
        "path": request.url.path,
        "status": exc.status_code,
        "detail": exc.message,
        "correlation_id": getattr(request.state, "correlation_id", "n/a"),
    }))
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    cid = getattr(request.state, "correlation_id", "n/a")
    logging.getLogger("app").error(json.dumps({
        "event": "error",
        "path": request.url.path,
        "detail": str(exc),
        "correlation_id": cid,
        "type": exc.__class__.__name__,
    }))
    return Response(content=json.dumps({"success": False, "error": "internal_error", "correlation_id": cid}), media_type="application/json", status_code=500)


@app.on_event("startup")
def startup():
    settings = get_settings()
    configure_logging(settings)
    if settings.auto_create_schema:
        _db.Base.metadata.create_all(bind=_db.engine)
    logging.getLogger("app").info(json.dumps({"event": "startup", "env": settings.app_env, "version": __version__}))


@app.get("/health")
def health():
    return {"db": _db.healthcheck(), "status": "ok"}


@app.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
