import ast
import uuid
import pytest # type: ignore
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite

import src.database.models
import src.database.store
from src.database.models import DataType, Measurement, OutletLink
from src.database.store import Identity, append_measurement, get_measurement, load_outlet_histories
from src.services.dr_status import get_dr_status

OUTLET_ID_1 = "11111111-1111-1111-1111-111111111111"
OUTLET_ID_2 = "22222222-2222-2222-2222-222222222222"
CAPTURED = datetime(2025, 6, 1, tzinfo=timezone.utc)

def authority_payload(**overrides):
    payload = {
        "data_type": DataType.AUTHORITY,
        "data_captured_at": CAPTURED,
        "raw_data": {"dr": 45},
        "authority_domain_rating": 45,
    }
    payload.update(overrides)
    return payload

def test_append_writes_measurement_and_link(db):
    result = append_measurement(db, OUTLET_ID_1, authority_payload(domain="example.com"))

    assert result.outlet_id == uuid.UUID(OUTLET_ID_1)
    link = db.query(OutletLink).one()
    assert link.apify_ahref_id == result.id
    assert link.outlet_id == uuid.UUID(OUTLET_ID_1)

    stored = get_measurement(db, result.id)
    assert stored.authority_domain_rating == 45
    assert stored.data_type == DataType.AUTHORITY
    assert stored.domain == "example.com"
    assert stored.url_input == ""

def test_raw_and_structured_payloads_round_trip(db, session_factory):
    raw = {"dr": 12, "nested": {"list": [1, 2.5, "three", None], "flag": True}, "unicode": "café"}
    history = [{"date": "2025-01-01", "traffic": 1200}, {"date": "2025-02-01", "traffic": 1350}]
    result = append_measurement(db, OUTLET_ID_1, {
        "data_type": "traffic",
        "data_captured_at": CAPTURED,
        "raw_data": raw,
        "traffic_monthly_avg": 1275,
        "traffic_history": history,
        "traffic_by_country": {"us": 800, "fr": 475},
    })

    # Read through a different session so nothing comes from the identity map
    other = session_factory()
    stored = get_measurement(other, result.id)
    assert stored.raw_data == raw
    assert stored.traffic_history == history
    assert stored.traffic_by_country == {"us": 800, "fr": 475}
    assert stored.authority_domain_rating is None
    other.close()

def test_append_records_identity(db):
    org_id, user_id = uuid.uuid4(), uuid.uuid4()
    result = append_measurement(db, OUTLET_ID_1, authority_payload(), Identity(org_id=org_id, user_id=user_id))

    stored = get_measurement(db, result.id)
    assert stored.org_id == org_id
    assert stored.user_id == user_id

def test_append_without_identity_stores_nulls(db):
    result = append_measurement(db, OUTLET_ID_1, authority_payload())

    stored = get_measurement(db, result.id)
    assert stored.org_id is None
    assert stored.user_id is None

def test_append_rolls_back_when_link_insert_fails(db, mocker):
    """The measurement is already flushed when the link fails; it must not survive."""
    mocker.patch('src.database.store.OutletLink', side_effect=RuntimeError("link insert failed"))

    with pytest.raises(RuntimeError):
        append_measurement(db, OUTLET_ID_1, authority_payload())

    assert db.query(Measurement).count() == 0
    assert db.query(OutletLink).count() == 0

def test_append_rolls_back_when_commit_fails(db, mocker):
    mocker.patch.object(db, 'commit', side_effect=RuntimeError("connection lost"))
    rollback = mocker.spy(db, 'rollback')

    with pytest.raises(RuntimeError):
        append_measurement(db, OUTLET_ID_1, authority_payload())

    rollback.assert_called_once()
    assert db.query(Measurement).count() == 0
    assert db.query(OutletLink).count() == 0

def test_malformed_outlet_id_is_rejected_before_writing(db):
    with pytest.raises(ValueError):
        append_measurement(db, "not-a-uuid", authority_payload())

    assert db.query(Measurement).count() == 0

def test_missing_mandatory_fields_are_rejected(db):
    with pytest.raises(ValueError, match="data_captured_at"):
        append_measurement(db, OUTLET_ID_1, {"data_type": "authority", "raw_data": {}})

    assert db.query(Measurement).count() == 0

def test_unknown_fields_are_rejected(db):
    with pytest.raises(ValueError, match="domainRating"):
        append_measurement(db, OUTLET_ID_1, authority_payload(domainRating=4))

def test_load_outlet_histories_groups_by_outlet(db, measure):
    measure(OUTLET_ID_1, 10, 30)
    measure(OUTLET_ID_1, 20, None)
    measure(OUTLET_ID_2, 5, data_type=DataType.TRAFFIC)

    histories = load_outlet_histories(db)

    assert set(histories) == {OUTLET_ID_1, OUTLET_ID_2}
    assert sorted(p.domain_rating or 0 for p in histories[OUTLET_ID_1]) == [0, 30]
    assert [p.data_type for p in histories[OUTLET_ID_2]] == [DataType.TRAFFIC]

def test_load_outlet_histories_filters_by_outlet(db, measure):
    measure(OUTLET_ID_1, 10, 30)
    measure(OUTLET_ID_2, 10, 40)

    histories = load_outlet_histories(db, [OUTLET_ID_2])

    assert list(histories) == [OUTLET_ID_2]
    assert histories[OUTLET_ID_2][0].domain_rating == 40

def test_back_to_back_writes_get_distinct_write_times(db):
    first = append_measurement(db, OUTLET_ID_1, authority_payload(authority_domain_rating=20))
    second = append_measurement(db, OUTLET_ID_1, authority_payload(authority_domain_rating=30))

    assert get_measurement(db, first.id).created_at < get_measurement(db, second.id).created_at

def test_same_capture_time_latest_write_wins(db):
    """Two results for one capture instant: the status reports the one stored last, every time."""
    now = datetime(2025, 6, 15, tzinfo=timezone.utc)
    outlet_ids = [str(uuid.uuid4()) for _ in range(20)]
    for outlet_id in outlet_ids:
        append_measurement(db, outlet_id, authority_payload(authority_domain_rating=20))
        append_measurement(db, outlet_id, authority_payload(authority_domain_rating=30))

    records = get_dr_status(db, outlet_ids, now=now)

    assert [r.latest_valid_rating for r in records] == [30] * len(outlet_ids)

@pytest.mark.parametrize("column", ["raw_data", "traffic_history", "overall_search_traffic_keywords"])
def test_json_columns_are_jsonb_on_postgres(column):
    column_type = Measurement.__table__.c[column].type
    assert column_type.compile(dialect=postgresql.dialect()) == "JSONB"
    assert column_type.compile(dialect=sqlite.dialect()) == "JSON"

@pytest.mark.parametrize("module", [src.database.models, src.database.store])
def test_database_layer_does_not_import_services(module):
    with open(module.__file__) as f:
        tree = ast.parse(f.read())
    imported = {node.module for node in ast.walk(tree) if isinstance(node, ast.ImportFrom)}
    imported |= {alias.name for node in ast.walk(tree) if isinstance(node, ast.Import) for alias in node.names}

    assert not [name for name in imported if name.startswith(("src.services", "src.api"))]
