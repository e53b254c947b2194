from __future__ import annotations

import base64
import binascii
import re
import uuid

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError

_IMAGE_DATA_URL = re.compile(r"^data:image/(png|jpeg|jpg);base64,(.*)$", re.DOTALL)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_uuid(value, field_name: str) -> str:
    """Return the canonical form of a UUID identifier."""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field_name} format")
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise ValidationError(f"Invalid {field_name} format") from None


def require_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value!r}") from None


def decode_image_data_url(value: str) -> bytes:
    """Decode a ``data:image/...;base64,`` payload sent by the dashboard."""
    match = _IMAGE_DATA_URL.match(value or "")
    if not match:
        raise ValidationError("Invalid image format")
    try:
        return base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid image encoding") from None
