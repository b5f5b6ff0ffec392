from datetime import datetime, timezone

def as_utc(value):
    """Timestamps read back from SQLite are naive; they were written as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def utcnow():
    return datetime.now(timezone.utc)
