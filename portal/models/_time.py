# portal/models/_time.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naivní UTC čas – tak ho ukládáme do DB."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
