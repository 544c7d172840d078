from datetime import UTC, datetime
from uuid import uuid4


def now() -> datetime:
    return datetime.now(UTC)


def generate_code() -> str:
    """Opaque one-time code for confirmation and recovery links."""
    return str(uuid4())
