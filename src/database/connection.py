from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi import Request

def build_engine(db_url, **engine_kwargs):
    """Create the engine for db_url."""
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        # One shared connection, otherwise every session sees an empty database
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine_kwargs.setdefault("poolclass", StaticPool)
    return create_engine(db_url, **engine_kwargs)

def create_session_factory(engine):
    # Create a Session factory bound to engine
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

def get_db(request: Request):
    # The factory lives on the app, so tests can hand in their own database
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
