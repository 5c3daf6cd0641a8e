"""
Helpers for reading query-string and JSON request parameters.

Bad input surfaces as ``ValidationError`` so the JSON error handler
renders it as a 400.
"""

from flask import request

from weeklyreport.errors import ValidationError
from weeklyreport.utils.week import WorkWeek, resolve_week


def week_from_args(week_key: str = "weekNumber", year_key: str = "year") -> WorkWeek:
    """Week from the query string, defaulting to the current work week."""
    try:
        return resolve_week(
            request.args.get(week_key, type=int),
            request.args.get(year_key, type=int),
        )
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def bool_arg(name: str) -> bool | None:
    """``true``/``1`` → True, ``false``/``0`` → False, absent → None."""
    value = request.args.get(name)
    if value is None or value == "":
        return None
    lowered = value.lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{name} must be true or false.")


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def pick(data: dict, **mapping: str) -> dict:
    """
    Rename present camelCase keys to keyword arguments.

    ``pick(data, first_name="firstName")`` → ``{"first_name": ...}`` if
    ``firstName`` is in ``data``; absent keys are left out.
    """
    return {arg: data[key] for arg, key in mapping.items() if key in data}


def require(data: dict, *keys: str) -> None:
    missing = [key for key in keys if data.get(key) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}.")
