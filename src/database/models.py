import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Text, JSON, Enum, ForeignKey, Index, Uuid
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(postgresql.JSONB(), "postgresql")
NullableJSON = JSON(none_as_null=True).with_variant(postgresql.JSONB(none_as_null=True), "postgresql")

def _utcnow():
    return datetime.now(timezone.utc)

class DataType(str, enum.Enum):
    AUTHORITY = "authority"
    TRAFFIC = "traffic"

class Measurement(Base):
    """One DR/traffic data point as delivered by the scraper. Never updated."""
    __tablename__ = 'apify_ahref'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    url_input = Column(Text, nullable=False, default="")
    domain = Column(Text, nullable=False, default="")
    data_captured_at = Column(DateTime(timezone=True), nullable=False)
    data_type = Column(
        Enum(DataType, name="ahref_data_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    mode = Column(String, nullable=True)
    raw_data = Column(JSONType, nullable=False)

    # --- Authority ---
    authority_domain_rating = Column(Integer, nullable=True)
    authority_url_rating = Column(Integer, nullable=True)
    authority_backlinks = Column(Integer, nullable=True)
    authority_refdomains = Column(Integer, nullable=True)
    authority_dofollow_backlinks = Column(Integer, nullable=True)
    authority_dofollow_refdomains = Column(Integer, nullable=True)

    # --- Traffic ---
    traffic_monthly_avg = Column(Integer, nullable=True)
    cost_monthly_avg = Column(BigInteger, nullable=True)
    traffic_history = Column(NullableJSON, nullable=True)
    traffic_top_pages = Column(NullableJSON, nullable=True)
    traffic_top_countries = Column(NullableJSON, nullable=True)
    traffic_top_keywords = Column(NullableJSON, nullable=True)
    overall_search_traffic = Column(BigInteger, nullable=True)
    overall_search_traffic_history = Column(NullableJSON, nullable=True)
    overall_search_traffic_value = Column(BigInteger, nullable=True)
    overall_search_traffic_value_history = Column(NullableJSON, nullable=True)
    overall_search_traffic_by_country = Column(NullableJSON, nullable=True)
    traffic_by_country = Column(NullableJSON, nullable=True)
    overall_search_traffic_keywords = Column(NullableJSON, nullable=True)

    # Who asked for the write, when the caller sent identity headers
    org_id = Column(Uuid, nullable=True)
    user_id = Column(Uuid, nullable=True)

    # Set in Python so rows written within one second still order correctly
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    outlet_links = relationship("OutletLink", back_populates="measurement", cascade="all, delete-orphan", passive_deletes=True)

class OutletLink(Base):
    """Ties an outlet (owned by the outlets service) to one measurement."""
    __tablename__ = 'ahref_outlets'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # No foreign key: outlets live in another service
    outlet_id = Column(Uuid, nullable=False)
    apify_ahref_id = Column(Uuid, ForeignKey('apify_ahref.id', ondelete='CASCADE'), nullable=False)
    measurement = relationship("Measurement", back_populates="outlet_links")

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_ahref_outlets_outlet", "outlet_id"),
        Index("idx_ahref_outlets_apify", "apify_ahref_id"),
    )
