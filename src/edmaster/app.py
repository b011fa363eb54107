import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import EdMasterError, InvalidActionError
from .globals import collaborator, word_bank
from .router import router

logger = logging.getLogger("edmaster")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


# --- Logging Setup ---
def setup_logging(log_dir: Optional[str] = None, debug: Optional[bool] = None):
    log_dir = log_dir or settings.LOG_DIR
    debug = settings.DEBUG if debug is None else debug
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, settings.LOG_FILE)
    # create_app can run more than once per process (tests, reloads)
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            if handler.baseFilename == os.path.abspath(log_path):
                return
            logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    word_bank.load_all()
    logger.info(f"Word bank ready: {word_bank.sources}")
    if not collaborator.api_key:
        logger.warning("GEMINI_API_KEY is not set; AI words and speech are disabled")
    yield


# --- Error Handling ---
async def edmaster_error_handler(request: Request, exc: EdMasterError):
    status_code = 409 if isinstance(exc, InvalidActionError) else 400
    logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse({"error": str(exc)}, status_code=status_code)


# --- App Factory ---
def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.add_exception_handler(EdMasterError, edmaster_error_handler)
    app.include_router(router)

    return app
