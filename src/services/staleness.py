"""
DR freshness policy.

Everything here is a pure function of an outlet's measurement history and a
reference time, so the status is recomputed on every read and can never drift
from what is stored.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from src.database.models import DataType
from src.database.store import MeasurementPoint
from src.timeutils import as_utc, utcnow

NO_DR_FETCHED = "No DR fetched yet"
DR_FETCH_TO_RETRY = "DR fetch to retry"
DR_OUTDATED = "DR outdated"
DR_EXISTS = "DR exists < 1 year"
DR_ATTEMPT_RECENT = "DR attempt < 1 month"

# Calendar arithmetic, same as Postgres '1 mon' / '1 year' intervals
RETRY_AFTER = relativedelta(months=1)
VALID_FOR = relativedelta(years=1)

LOW_RATING_THRESHOLD = 10

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

@dataclass(frozen=True)
class StalenessRecord:
    outlet_id: str
    needs_update: bool
    reason: str
    latest_search_date: Optional[datetime] = None
    latest_valid_rating: Optional[int] = None
    latest_valid_rating_date: Optional[datetime] = None

@dataclass(frozen=True)
class LowRatingRecord(StalenessRecord):
    has_low_rating: Optional[bool] = None

def _recency_key(point):
    return (as_utc(point.captured_at), as_utc(point.written_at) or _EPOCH, point.measurement_id)

def default_record(outlet_id) -> StalenessRecord:
    """Status of an outlet that has never been measured."""
    return StalenessRecord(outlet_id=str(outlet_id), needs_update=True, reason=NO_DR_FETCHED)

def _classify(latest_search, latest_valid, now):
    # Branches overlap, so order matters: first match wins
    if latest_search is None:
        return True, NO_DR_FETCHED
    if latest_valid is None and as_utc(latest_search.captured_at) < now - RETRY_AFTER:
        return True, DR_FETCH_TO_RETRY
    if latest_valid is not None and as_utc(latest_valid.captured_at) < now - VALID_FOR:
        return True, DR_OUTDATED
    if latest_valid is not None:
        return False, DR_EXISTS
    return False, DR_ATTEMPT_RECENT

def evaluate_staleness(outlet_id, history: Iterable[MeasurementPoint], now: Optional[datetime] = None) -> StalenessRecord:
    """
    Decide whether an outlet's DR needs refreshing.

    Only authority measurements count. The latest search is the newest of
    them whatever its rating; the latest valid rating is the newest one that
    actually carries a domain rating.
    """
    now = as_utc(now) if now is not None else utcnow()
    searches = sorted(
        (p for p in history if p.data_type == DataType.AUTHORITY),
        key=_recency_key,
        reverse=True,
    )
    latest_search = searches[0] if searches else None
    latest_valid = next((p for p in searches if p.domain_rating is not None), None)

    needs_update, reason = _classify(latest_search, latest_valid, now)
    return StalenessRecord(
        outlet_id=str(outlet_id),
        needs_update=needs_update,
        reason=reason,
        latest_search_date=as_utc(latest_search.captured_at) if latest_search else None,
        latest_valid_rating=latest_valid.domain_rating if latest_valid else None,
        latest_valid_rating_date=as_utc(latest_valid.captured_at) if latest_valid else None,
    )

def evaluate_low_rating(record: StalenessRecord) -> Optional[bool]:
    """None when there is no rating to judge, otherwise whether it is below the threshold."""
    if record.latest_valid_rating is None:
        return None
    return record.latest_valid_rating < LOW_RATING_THRESHOLD

def with_low_rating(record: StalenessRecord) -> LowRatingRecord:
    return LowRatingRecord(**asdict(record), has_low_rating=evaluate_low_rating(record))
