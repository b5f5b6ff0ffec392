"""
Measurement ledger.

Measurements are only ever inserted. A write adds one ``apify_ahref`` row and
one ``ahref_outlets`` row in the same transaction.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional

from src.database.models import DataType, Measurement, OutletLink
from src.timeutils import as_utc

logger = logging.getLogger(__name__)

# Columns a caller may fill; the rest are generated or come from the identity
MEASUREMENT_FIELDS = frozenset(
    column.name for column in Measurement.__table__.columns
) - {"id", "org_id", "user_id", "created_at", "updated_at"}

REQUIRED_FIELDS = ("data_type", "data_captured_at", "raw_data")

class Identity(NamedTuple):
    org_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None

class AppendResult(NamedTuple):
    id: uuid.UUID
    outlet_id: uuid.UUID

@dataclass(frozen=True)
class MeasurementPoint:
    """The slice of a stored measurement the freshness policy looks at."""
    data_type: DataType
    domain_rating: Optional[int]
    captured_at: datetime
    # Tie-break for equal capture times: later writes win
    written_at: Optional[datetime] = None
    measurement_id: str = ""

def _as_uuid(value):
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))

def append_measurement(db, outlet_id, measurement: dict, identity: Optional[Identity] = None) -> AppendResult:
    """
    Insert a measurement and link it to outlet_id, all or nothing.

    Raises ValueError before touching the database when the outlet id or the
    measurement is malformed. Any database error rolls the whole write back
    and is re-raised.
    """
    outlet_uuid = _as_uuid(outlet_id)
    missing = [name for name in REQUIRED_FIELDS if measurement.get(name) is None]
    if missing:
        raise ValueError(f"Missing measurement fields: {', '.join(missing)}")
    unknown = set(measurement) - MEASUREMENT_FIELDS
    if unknown:
        raise ValueError(f"Unknown measurement fields: {', '.join(sorted(unknown))}")

    identity = identity or Identity()
    values = dict(measurement)
    values["data_type"] = DataType(values["data_type"])
    values["data_captured_at"] = as_utc(values["data_captured_at"])
    values["url_input"] = values.get("url_input") or ""
    values["domain"] = values.get("domain") or ""

    try:
        record = Measurement(id=uuid.uuid4(), org_id=identity.org_id, user_id=identity.user_id, **values)
        db.add(record)
        db.flush()

        db.add(OutletLink(outlet_id=outlet_uuid, apify_ahref_id=record.id))
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Rolled back measurement write for outlet %s", outlet_uuid)
        raise

    logger.info("Stored %s measurement %s for outlet %s", values["data_type"].value, record.id, outlet_uuid)
    return AppendResult(id=record.id, outlet_id=outlet_uuid)

def get_measurement(db, measurement_id) -> Optional[Measurement]:
    return db.query(Measurement).filter(Measurement.id == _as_uuid(measurement_id)).first()

def load_outlet_histories(db, outlet_ids=None) -> dict:
    """
    Map every linked outlet (optionally only those in outlet_ids) to the
    measurements it has been linked to. Keys are canonical outlet id strings.
    """
    query = db.query(
        OutletLink.outlet_id,
        Measurement.id,
        Measurement.data_type,
        Measurement.authority_domain_rating,
        Measurement.data_captured_at,
        Measurement.created_at,
    ).join(Measurement, OutletLink.apify_ahref_id == Measurement.id)

    if outlet_ids is not None:
        query = query.filter(OutletLink.outlet_id.in_([_as_uuid(i) for i in outlet_ids]))

    histories = defaultdict(list)
    for row in query.order_by(OutletLink.outlet_id).all():
        histories[str(row.outlet_id)].append(MeasurementPoint(
            data_type=row.data_type,
            domain_rating=row.authority_domain_rating,
            captured_at=row.data_captured_at,
            written_at=row.created_at,
            measurement_id=str(row.id),
        ))
    return dict(histories)
