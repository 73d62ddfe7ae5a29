"""
Request payload validation helpers

Each parser takes the raw JSON/query mapping, normalizes it and raises
services.errors.ValidationError with a client-facing message on bad input.
"""

import uuid
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from services.errors import ValidationError, InvalidWarningTarget

E = TypeVar('E', bound=Enum)

SINGLE_TARGET_MESSAGE = "Either driverId or staffId must be provided, but not both"


def is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
        return True
    except ValueError:
        return False


def blank_to_none(value: Any) -> Any:
    """Treat empty strings as omitted"""
    if value is None:
        return None
    if isinstance(value, str) and value.strip() == '':
        return None
    return value


def require_text(payload: Mapping[str, Any], field: str, label: str, max_length: int) -> str:
    value = payload.get(field)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{label} must be less than {max_length} characters")
    return value


def optional_text(payload: Mapping[str, Any], field: str, label: str, max_length: int) -> Optional[str]:
    value = blank_to_none(payload.get(field))
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{label} must be less than {max_length} characters")
    return value


def parse_enum(enum_cls: Type[E], value: Any, label: str, default: Optional[E] = None) -> Optional[E]:
    """Look an enum member up by name (case-insensitive)"""
    value = blank_to_none(value)
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls[value.strip().upper()]
        except KeyError:
            pass
    allowed = ', '.join(member.name for member in enum_cls)
    raise ValidationError(f"{label} must be one of: {allowed}")


def parse_single_target(payload: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """
    Enforce that exactly one of driverId/staffId is present.

    Raises:
        InvalidWarningTarget: both or neither supplied
        ValidationError: the supplied id is not UUID-shaped
    """
    driver_id = blank_to_none(payload.get('driverId'))
    staff_id = blank_to_none(payload.get('staffId'))

    if (driver_id is None) == (staff_id is None):
        raise InvalidWarningTarget(SINGLE_TARGET_MESSAGE)

    if driver_id is not None and not is_uuid(driver_id):
        raise ValidationError("Driver ID must be a valid UUID")
    if staff_id is not None and not is_uuid(staff_id):
        raise ValidationError("Staff ID must be a valid UUID")

    return {'driver_id': driver_id, 'staff_id': staff_id}


def parse_optional_id(value: Any, label: str) -> Optional[str]:
    value = blank_to_none(value)
    if value is None:
        return None
    if not is_uuid(value):
        raise ValidationError(f"{label} must be a valid UUID")
    return value


def parse_positive_int(value: Any, label: str, default: int, maximum: Optional[int] = None) -> int:
    value = blank_to_none(value)
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a positive integer")
    if number < 1:
        raise ValidationError(f"{label} must be a positive integer")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{label} must be at most {maximum}")
    return number


# Largest OFFSET the database drivers accept (signed 64-bit)
MAX_QUERY_OFFSET = 2 ** 63 - 1


def parse_page_args(args: Mapping[str, Any], default_limit: int, max_limit: int) -> Dict[str, int]:
    page = parse_positive_int(args.get('page'), 'page', 1)
    limit = parse_positive_int(args.get('limit'), 'limit', default_limit, max_limit)
    if (page - 1) * limit > MAX_QUERY_OFFSET:
        raise ValidationError("page is out of range")
    return {'page': page, 'limit': limit}


def parse_json_body(req) -> Dict[str, Any]:
    """JSON object body of a Flask request, or ValidationError"""
    payload = req.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")
    return payload
