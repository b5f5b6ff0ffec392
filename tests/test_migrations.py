import os

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from src.config import settings
from src.database.models import Base

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")

def alembic_config():
    # No ini file, so env.py leaves the test logging setup alone
    config = Config()
    config.set_main_option("script_location", MIGRATIONS_DIR)
    return config

def test_upgrade_creates_the_model_tables(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setattr(settings, "DB_URL", db_url)

    command.upgrade(alembic_config(), "head")

    engine = create_engine(db_url)
    inspector = inspect(engine)
    for table in Base.metadata.sorted_tables:
        columns = {c["name"] for c in inspector.get_columns(table.name)}
        assert columns == {c.name for c in table.columns}, table.name
    indexes = {i["name"] for i in inspector.get_indexes("ahref_outlets")}
    assert indexes == {"idx_ahref_outlets_outlet", "idx_ahref_outlets_apify"}
    engine.dispose()

def test_downgrade_drops_everything(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setattr(settings, "DB_URL", db_url)
    config = alembic_config()

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = create_engine(db_url)
    assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    engine.dispose()
