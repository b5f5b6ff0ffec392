import logging

from fastapi import FastAPI, APIRouter, Body, Depends, Request # import FastAPI and other dependencies
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session # import Session for database interactions
from typing import Any, List, Optional # typing helpers for params and response models

from src.config import settings as default_settings
from src.database.connection import build_engine, create_session_factory, get_db # engine setup and the per-request session dependency
from src.api.schemas import UpdateDomainRatingBody, UpdateDomainRatingResponse, DrStatusResponse, LowDrResponse
from src.api.security import ApiError, require_api_key, extract_identity, parse_uuid
from src.services import dr_status
from src.services.outlets_client import OutletsClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "ahref-service"

def get_outlets_client(request: Request) -> OutletsClient:
    client = request.app.state.outlets_client
    if client is None:
        raise RuntimeError("Outlets service is not configured")
    return client

router = APIRouter(dependencies=[Depends(require_api_key)])

# 1. DR status for an explicit list of outlets
@router.get("/outlets/dr-status", response_model=List[DrStatusResponse])
def get_dr_status(outletIds: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Status for every id in the comma-separated outletIds list.
    Outlets that were never measured come back as "No DR fetched yet".
    """
    if not outletIds:
        raise ApiError(400, "outletIds query parameter is required")

    outlet_ids = [i.strip() for i in outletIds.split(",") if i.strip()]
    for outlet_id in outlet_ids:
        if parse_uuid(outlet_id) is None:
            raise ApiError(400, f"Invalid UUID: {outlet_id}")

    try:
        records = dr_status.get_dr_status(db, outlet_ids)
    except Exception:
        logger.exception("Error fetching DR status")
        raise ApiError(500, "Internal server error")
    return [DrStatusResponse.from_record(r) for r in records]

# 2. Every measured outlet whose DR needs refreshing
@router.get("/outlets/dr-stale", response_model=List[DrStatusResponse])
def get_dr_stale(db: Session = Depends(get_db)):
    try:
        records = dr_status.get_dr_stale(db)
    except Exception:
        logger.exception("Error fetching stale DR")
        raise ApiError(500, "Internal server error")
    return [DrStatusResponse.from_record(r) for r in records]

# 3. Write a new DR / traffic data point
@router.patch("/outlets/{outletId}/domain-rating", status_code=201, response_model=UpdateDomainRatingResponse)
def update_domain_rating(
    outletId: str,
    request: Request,
    body: Any = Body(None),
    db: Session = Depends(get_db),
):
    """
    Append a scraper result to the outlet's history. The measurement and its
    outlet link are written in one transaction.
    """
    if parse_uuid(outletId) is None:
        raise ApiError(400, "Invalid outlet ID")
    try:
        parsed = UpdateDomainRatingBody.model_validate(body)
    except ValidationError as e:
        raise ApiError(400, "Invalid body", e.errors(include_url=False, include_context=False))

    identity = extract_identity(request)
    try:
        result = dr_status.update_domain_rating(db, outletId, parsed.to_measurement(), identity)
    except Exception:
        logger.exception("Error updating domain rating")
        raise ApiError(500, "Internal server error")
    return UpdateDomainRatingResponse(id=result.id, outlet_id=result.outlet_id)

# 4. Measured outlets with a low DR
@router.get("/outlets/low-domain-rating", response_model=List[LowDrResponse])
def get_low_domain_rating(db: Session = Depends(get_db)):
    try:
        records = dr_status.get_low_domain_rating(db)
    except Exception:
        logger.exception("Error fetching low DR outlets")
        raise ApiError(500, "Internal server error")
    return [LowDrResponse.from_record(r) for r in records]

# 5. DR status for every outlet of a campaign
@router.get("/outlets/campaign-categories-dr-status", response_model=List[DrStatusResponse])
def get_campaign_dr_status(
    request: Request,
    campaignId: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if not campaignId:
        raise ApiError(400, "campaignId query parameter is required")
    if parse_uuid(campaignId) is None:
        raise ApiError(400, "Invalid campaignId")

    try:
        outlet_ids = get_outlets_client(request).get_outlets_by_campaign(campaignId)
        if not outlet_ids:
            return []
        records = dr_status.get_dr_status(db, outlet_ids)
    except Exception:
        logger.exception("Error fetching campaign DR status")
        raise ApiError(500, "Internal server error")
    return [DrStatusResponse.from_record(r) for r in records]

async def api_error_handler(request: Request, exc: ApiError):
    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = jsonable_encoder(exc.details)
    return JSONResponse(status_code=exc.status_code, content=content)

async def request_validation_handler(request: Request, exc: RequestValidationError):
    # e.g. a PATCH body that is not JSON at all
    return JSONResponse(status_code=400, content={"error": "Invalid body", "details": jsonable_encoder(exc.errors())})

def create_app(settings=None, engine=None, outlets_client=None) -> FastAPI:
    """Build the API. Tests pass their own engine and outlets client."""
    settings = settings or default_settings
    app = FastAPI(title="Ahref Service", version="1.0.0") # Initialize FastAPI app

    app.state.api_key = settings.API_KEY
    app.state.engine = engine or build_engine(settings.DB_URL)
    app.state.session_factory = create_session_factory(app.state.engine)
    if outlets_client is None and settings.OUTLETS_SERVICE_URL:
        outlets_client = OutletsClient(
            settings.OUTLETS_SERVICE_URL,
            settings.OUTLETS_SERVICE_API_KEY or "",
            timeout=settings.OUTLETS_SERVICE_TIMEOUT,
        )
    app.state.outlets_client = outlets_client

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/health")
    def health_check():
        """Simple health check endpoint, no auth."""
        return {"status": "ok", "service": SERVICE_NAME}

    app.include_router(router)
    return app

app = create_app()

def run():
    import uvicorn
    from src.database.models import Base
    from src.logging_config import configure_logging

    configure_logging(default_settings.LOG_LEVEL)
    default_settings.validate()

    # Create missing tables on startup; alembic handles real migrations
    Base.metadata.create_all(app.state.engine)
    logger.info("%s listening on port %s", SERVICE_NAME, default_settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)

if __name__ == "__main__":
    run()
