from datetime import date
from typing import Optional

from flask import request
from flask_login import current_user

from ...services.hierarchy_service import HierarchyService


def actor_id() -> Optional[int]:
    if getattr(current_user, "is_authenticated", False):
        return current_user.id
    return None


def service() -> HierarchyService:
    return HierarchyService()


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def parse_date(val) -> Optional[date]:
    if val in (None, ""):
        return None
    if isinstance(val, date):
        return val
    try:
        # Accept YYYY-MM-DD and full ISO datetimes
        return date.fromisoformat(str(val)[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {val!r}. Use YYYY-MM-DD.")


def parse_optional_int(val, field: str) -> Optional[int]:
    if val in (None, ""):
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer")


def ok(message: str, **payload):
    return {"success": True, "message": message, **payload}
