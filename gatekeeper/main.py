"""Gatekeeper FastAPI Application"""

from fastapi import FastAPI, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from gatekeeper.config import get_config
from gatekeeper.database import get_db, get_pool_status, init_db
from gatekeeper.gate import GateController
from gatekeeper.resolver import RequestContext
from gatekeeper.schemas import CheckResponse, HealthResponse
from gatekeeper.version import get_version, get_build_info

# Setup logging
_log_config = get_config().logging
logging.basicConfig(
    level=getattr(logging, _log_config.level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
if _log_config.file:
    _file_handler = logging.FileHandler(_log_config.file)
    _file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logging.getLogger().addHandler(_file_handler)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Gatekeeper",
    description="Inbound request gatekeeper: block decisions and visit statistics",
    version=get_version()
)


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    init_db()
    logger.info("Database initialized")


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="healthy", version=get_version(), database=get_pool_status())


# Version endpoint
@app.get("/api/version")
async def get_app_version():
    """Get application version and build information"""
    return get_build_info()


@app.api_route("/api/check", methods=["GET", "POST"], response_model=CheckResponse)
async def check_visit(request: Request, db: Session = Depends(get_db)):
    """Check the calling client and record the visit.

    Always answers 200 with the full response shape; the caller decides
    what to do with ``block``.
    """
    context = await RequestContext.from_request(request)
    controller = GateController(db, context)
    result = await run_in_threadpool(controller.check)
    return JSONResponse(content=result.as_payload())


if __name__ == "__main__":
    import uvicorn

    web_config = get_config().web
    uvicorn.run("gatekeeper.main:app", host=web_config.host, port=web_config.port)
