# listing_lifecycle/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listing_lifecycle.config import ALLOWED_ORIGINS
from listing_lifecycle.errors import ListingError
from listing_lifecycle.logging_config import setup_logging
from listing_lifecycle.middleware import RequestIDMiddleware
from listing_lifecycle.routes.health import router as health_router
from listing_lifecycle.routes.listings import router as listings_router
from listing_lifecycle.routes.metrics import router as metrics_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Listing Lifecycle API",
    description="Create, update and delete vehicle and property listings with their assets and payment records",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(listings_router, tags=["Listings"])


@app.exception_handler(ListingError)
async def listing_error_handler(request: Request, exc: ListingError) -> JSONResponse:
    """
    Render a ListingError as {"success": false, "error", "requestId"}.

    The request id lets operators find the logged detail of asset and storage
    failures, which is never put in the body.
    """
    request_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error(
            "listing_request_failed",
            kind=exc.kind,
            path=request.url.path,
            detail=exc.detail,
        )
    else:
        logger.info(
            "listing_request_rejected",
            kind=exc.kind,
            path=request.url.path,
            error=exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "requestId": request_id},
    )


@app.on_event("startup")
def startup_event() -> None:
    """Log the wiring the service starts with."""
    from listing_lifecycle.config import load_asset_host_config

    asset_host = load_asset_host_config()
    logger.info("FastAPI application starting up...", asset_host=repr(asset_host))
    if not asset_host.has_credentials:
        logger.warning("asset_host_credentials_missing")
    logger.info("FastAPI application initialized")
