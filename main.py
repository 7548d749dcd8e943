import os
import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import database
from logger import get_logger, setup_logging
from routes import (
    advisory,
    auth,
    communication,
    dashboard,
    digital_twin,
    gamification,
    localization,
    practices,
    profile,
)
from schemas import Adoption, Advisory, Farmer, Gamification, Message, Practice, Simulation
from security import get_current_farmer
from seed import seed_practices

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(os.path.join(config.UPLOAD_DIR, "advisory"), exist_ok=True)
    database.ensure_indexes()
    logger.info("startup", database=config.DATABASE_NAME if database.db is not None else None)
    yield


app = FastAPI(title="Sustainable Farming Network API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request.headers.get("x-request-id") or uuid.uuid4().hex)
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response

# ------------------------- Error envelope -------------------------

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # loc[0] is the request part (body, query, path, form)
        loc = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc), "message": err.get("msg"), "type": err.get("type")})
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def server_error(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server error"})

# ------------------------- Routers -------------------------

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(profile.router, prefix="/api/profile", tags=["profile"])
app.include_router(advisory.router, prefix="/api/advisory", tags=["advisory"])
app.include_router(practices.router, prefix="/api/practices", tags=["practices"])
app.include_router(gamification.router, prefix="/api/gamification", tags=["gamification"])
app.include_router(communication.router, prefix="/api/communication", tags=["communication"])
app.include_router(digital_twin.router, prefix="/api/digital-twin", tags=["digital-twin"])
app.include_router(localization.router, prefix="/api/localization", tags=["localization"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])

app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")

COLLECTION_MODELS = [Farmer, Advisory, Practice, Adoption, Gamification, Simulation, Message]

# Root and health
@app.get("/")
def read_root():
    return {"message": "Sustainable Farming Network API running"}


@app.get("/test")
def test_database():
    response = {"backend": "✅ Running", "database": "❌ Not Available"}
    if database.db is not None:
        try:
            database.db.list_collection_names()
            response["database"] = "✅ Connected"
        except Exception as e:
            logger.warning("database_check_failed", error=str(e))
            response["database"] = f"⚠️ {str(e)[:80]}"
    return response


@app.get("/schema")
def collection_schemas():
    return {model.__name__.lower(): model.model_json_schema() for model in COLLECTION_MODELS}


@app.post("/seed")
def seed(farmer=Depends(get_current_farmer)):
    added = seed_practices()
    logger.info("seed_requested", farmer_id=farmer["id"], inserted=added)
    return {"message": "Sample practices inserted" if added else "Practices already present", "inserted": added}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
