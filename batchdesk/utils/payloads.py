"""Helpers for reading JSON request payloads.

The React front end sends camelCase keys while the CLI and tests tend to use
snake_case, so every lookup accepts both spellings.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping, Optional


class ValidationError(ValueError):
    """Raised when a request payload cannot be parsed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_errors(self) -> dict:
        return {self.field or 'general': [str(self)]}


def _snake(key: str) -> str:
    out = []
    for char in key:
        if char.isupper():
            out.append('_')
            out.append(char.lower())
        else:
            out.append(char)
    return ''.join(out)


def pick(payload: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Return ``payload[key]`` looking at both camelCase and snake_case."""
    if key in payload:
        return payload[key]
    snake = _snake(key)
    if snake in payload:
        return payload[snake]
    return default


def parse_float(payload: Mapping[str, Any], key: str, default: Optional[float] = None) -> Optional[float]:
    value = pick(payload, key)
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number.", key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number.", key)
    if not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number.", key)
    return number


def parse_int(payload: Mapping[str, Any], key: str, default: Optional[int] = None) -> Optional[int]:
    value = pick(payload, key)
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer.", key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer.", key)


def parse_bool(payload: Mapping[str, Any], key: str, default: Optional[bool] = None) -> Optional[bool]:
    value = pick(payload, key)
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {'1', 'true', 'yes', 'on'}:
        return True
    if lowered in {'0', 'false', 'no', 'off'}:
        return False
    raise ValidationError(f"{key} must be a boolean.", key)


def parse_date(payload: Mapping[str, Any], key: str, default: Optional[date] = None) -> Optional[date]:
    value = pick(payload, key)
    if value is None or value == '':
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if 'T' in text or ' ' in text:
            return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO date.", key)


def parse_str(payload: Mapping[str, Any], key: str, default: Optional[str] = None,
              max_length: Optional[int] = None) -> Optional[str]:
    value = pick(payload, key)
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters.", key)
    return text


def require(value: Any, key: str) -> Any:
    if value is None:
        raise ValidationError(f"{key} is required.", key)
    return value
