import os
import sys
from logging.config import fileConfig

from sqlalchemy import pool

from alembic import context

# --- CUSTOM: Add the project root to path so we can import the ledger models ---
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.database.connection import build_engine
from src.database.models import Base
from src.config import settings
# -----------------------------------------------------------

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# apify_ahref + ahref_outlets, for autogenerate
target_metadata = Base.metadata

def run_migrations_offline() -> None:
    """Emit the SQL for AHREF_SERVICE_DATABASE_URL's dialect instead of running it."""
    context.configure(
        url=settings.DB_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online() -> None:
    # Same engine setup as the app; no pooling for a one-shot migration run
    engine = build_engine(settings.DB_URL, poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite cannot ALTER most things in place
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
