from pydantic import BaseModel, BeforeValidator, ConfigDict, AwareDatetime # ConfigDict carries the camelCase aliases
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Any, Dict, Optional
from uuid import UUID

from src.database.models import DataType

def _reject_text_and_bool(value):
    # JSON numbers only; whole floats like 45.0 still pass the int check
    if isinstance(value, (bool, str)):
        raise ValueError("must be a JSON number")
    return value

JsonInt = Annotated[int, BeforeValidator(_reject_text_and_bool)]

class CamelModel(BaseModel):
    # JSON speaks camelCase, Python speaks snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class UpdateDomainRatingBody(CamelModel):
    """One scraper result for an outlet. Only dataType, dataCapturedAt and rawData are required."""
    data_type: DataType
    data_captured_at: AwareDatetime
    url_input: Optional[str] = None
    domain: Optional[str] = None
    mode: Optional[str] = None
    raw_data: Dict[str, Any]

    # Authority
    authority_domain_rating: Optional[JsonInt] = None
    authority_url_rating: Optional[JsonInt] = None
    authority_backlinks: Optional[JsonInt] = None
    authority_refdomains: Optional[JsonInt] = None
    authority_dofollow_backlinks: Optional[JsonInt] = None
    authority_dofollow_refdomains: Optional[JsonInt] = None

    # Traffic
    traffic_monthly_avg: Optional[JsonInt] = None
    cost_monthly_avg: Optional[JsonInt] = None
    traffic_history: Optional[Any] = None
    traffic_top_pages: Optional[Any] = None
    traffic_top_countries: Optional[Any] = None
    traffic_top_keywords: Optional[Any] = None
    overall_search_traffic: Optional[JsonInt] = None
    overall_search_traffic_history: Optional[Any] = None
    overall_search_traffic_value: Optional[JsonInt] = None
    overall_search_traffic_value_history: Optional[Any] = None
    overall_search_traffic_by_country: Optional[Any] = None
    traffic_by_country: Optional[Any] = None
    overall_search_traffic_keywords: Optional[Any] = None

    def to_measurement(self) -> dict:
        """Column values for the measurement ledger."""
        return self.model_dump()

class UpdateDomainRatingResponse(CamelModel):
    id: UUID
    outlet_id: UUID

class DrStatusResponse(CamelModel):
    outlet_id: str
    dr_to_update: bool
    dr_update_reason: Optional[str] = None
    dr_latest_search_date: Optional[datetime] = None
    latest_valid_dr: Optional[int] = None
    latest_valid_dr_date: Optional[datetime] = None
    needs_update: bool

    @classmethod
    def from_record(cls, record):
        return cls(
            outlet_id=record.outlet_id,
            dr_to_update=record.needs_update,
            dr_update_reason=record.reason,
            dr_latest_search_date=record.latest_search_date,
            latest_valid_dr=record.latest_valid_rating,
            latest_valid_dr_date=record.latest_valid_rating_date,
            needs_update=record.needs_update,
        )

class LowDrResponse(DrStatusResponse):
    has_low_domain_rating: Optional[bool] = None

    @classmethod
    def from_record(cls, record):
        base = DrStatusResponse.from_record(record).model_dump()
        return cls(**base, has_low_domain_rating=record.has_low_rating)
