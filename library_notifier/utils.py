from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; all stored times in the shared database are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
