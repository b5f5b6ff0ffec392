import uuid
from typing import List, Optional

from src.database.store import Identity, append_measurement, load_outlet_histories
from src.services.staleness import (
    StalenessRecord, LowRatingRecord, default_record, evaluate_staleness, with_low_rating,
)
from src.timeutils import utcnow

def _evaluate_all(histories, now):
    return {outlet_id: evaluate_staleness(outlet_id, history, now) for outlet_id, history in histories.items()}

def get_dr_status(db, outlet_ids, now=None) -> List[StalenessRecord]:
    """
    One record per requested outlet, in request order.

    Outlets that were never measured get the "No DR fetched yet" default, so
    the answer always covers every id asked for. Duplicates collapse onto the
    first occurrence.
    """
    if not outlet_ids:
        return []
    requested = list(dict.fromkeys(str(uuid.UUID(str(i))) for i in outlet_ids))

    found = _evaluate_all(load_outlet_histories(db, requested), now or utcnow())
    unknown = set(requested) - set(found)
    defaults = {outlet_id: default_record(outlet_id) for outlet_id in unknown}
    return [found.get(outlet_id) or defaults[outlet_id] for outlet_id in requested]

def get_dr_stale(db, now=None) -> List[StalenessRecord]:
    records = _evaluate_all(load_outlet_histories(db), now or utcnow())
    return [record for record in records.values() if record.needs_update]

def get_low_domain_rating(db, now=None) -> List[LowRatingRecord]:
    """Measured outlets whose latest valid DR is low, most recently searched first."""
    records = _evaluate_all(load_outlet_histories(db), now or utcnow())
    low = [r for r in map(with_low_rating, records.values()) if r.has_low_rating is True]
    # Newest search first, outlets never searched at the end
    low.sort(key=lambda r: r.latest_search_date.timestamp() if r.latest_search_date else float("-inf"), reverse=True)
    return low

def update_domain_rating(db, outlet_id, measurement: dict, identity: Optional[Identity] = None):
    return append_measurement(db, outlet_id, measurement, identity)
