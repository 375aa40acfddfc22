"""Document helpers shared by the collection wrappers"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from ..core.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes read back from the store as UTC"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_object_id(value: Any, field: str = "id") -> ObjectId:
    """Parse a client-supplied identifier or raise a 400"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field} format")


def email_pattern(email: str) -> dict:
    """Case-insensitive exact-match filter for an email field"""
    return {"$regex": f"^{re.escape(email.strip())}$", "$options": "i"}


def to_serializable(value: Any) -> Any:
    """Convert ObjectIds inside a document tree to strings"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: to_serializable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_serializable(v) for v in value]
    return value
