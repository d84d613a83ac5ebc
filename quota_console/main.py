from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from pathlib import Path

from quota_console.database import engine, Base
from quota_console import models  # noqa: F401  registers all tables on Base
from quota_console.auto_migrate import auto_migrate
from quota_console.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS
)
from quota_console.exceptions import ConsoleException
from quota_console.routes import checkin, user_group, model_group, account
from quota_console.routes.common import api_error


def resolve_log_path() -> Path:
    """Log file location; falls back to the local directory when /var/log is not writable"""
    file_name = os.getenv("QUOTA_CONSOLE_LOG_FILE", "app.log")
    for directory in (os.getenv("QUOTA_CONSOLE_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD), DEFAULT_LOG_DIRECTORY_DEV):
        try:
            Path(directory).mkdir(parents=True, exist_ok=True)
        except PermissionError:
            continue
        return Path(directory) / file_name
    raise PermissionError(f"No writable log directory, tried {DEFAULT_LOG_DIRECTORY_DEV}")


log_path = resolve_log_path()
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.FileHandler(log_path), logging.StreamHandler()]
)
logger = logging.getLogger("quota_console")


def init_database():
    Base.metadata.create_all(bind=engine)
    # A failed column migration leaves the old schema in place
    try:
        auto_migrate()
    except Exception as e:
        logger.error(f"Schema migration failed, continuing with current schema: {e}")


init_database()

app = FastAPI(
    title="Quota Console API",
    description="Check-in rewards, user groups, model permissions and usage logs",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConsoleException)
async def console_exception_handler(request: Request, exc: ConsoleException):
    """Business failures are reported in the envelope with HTTP 200"""
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=200, content=api_error(str(exc)))


for router in (
    checkin.router,
    user_group.router,
    user_group.enable_group_router,
    model_group.router,
    account.user_router,
    account.option_router,
    account.log_router,
):
    app.include_router(router)


@app.on_event("startup")
async def on_startup():
    logger.info(f"Quota Console API ready, log file {log_path}")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Quota Console API stopped")


@app.get("/")
async def health():
    """Liveness probe, no API key needed"""
    return {"service": "quota-console", "status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("quota_console.main:app", host="0.0.0.0", port=8000, reload=False)
