from datetime import date, datetime, time, timezone

from flask.json.provider import DefaultJSONProvider


def utcnow():
    return datetime.now(timezone.utc)


def as_utc_datetime(value):
    """Midnight UTC for a date, unchanged aware datetime, UTC for naive ones."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def serialize(obj):
    """Recursively make Firestore data JSON-safe (ISO dates)."""
    if isinstance(obj, dict):
        return {k: serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(v) for v in obj]
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return obj


class ATMSJSONProvider(DefaultJSONProvider):
    """Emit ISO 8601 timestamps instead of HTTP dates."""

    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)
