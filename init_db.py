from src.database.models import Base
from src.database.connection import build_engine
from src.config import settings

# Quick local setup; production databases go through `alembic upgrade head`
engine = build_engine(settings.DB_URL)
Base.metadata.create_all(engine)
print("Tables apify_ahref and ahref_outlets created successfully.")
