import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from textile_backend.core.config import settings
from textile_backend.core.http_hardening import install_http_hardening
from textile_backend.api.admin.router import router as admin_router
from textile_backend.services.predicate_sql import PredicateError
from textile_backend.services.system_init import run_initialization

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_ON_STARTUP:
        run_initialization()
    yield

app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_hardening(app)

app.include_router(admin_router, prefix="/api/admin")

@app.exception_handler(PredicateError)
async def predicate_error_handler(request: Request, exc: PredicateError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

@app.get("/health")
def health():
    return {"status": "ok"}
