# nest_api/common/validation.py
from __future__ import annotations

import re
from datetime import datetime, date
from decimal import Decimal, InvalidOperation

from flask import request
from werkzeug.routing import IntegerConverter

from nest_api.common.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_MISSING = object()

# largest value a BIGINT primary key can hold
MAX_ID = 2 ** 63 - 1


class IdConverter(IntegerConverter):
    """``<int:...>`` that stops matching past MAX_ID, so huge ids are a plain 404."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_ID)
        super().__init__(map, *args, **kwargs)


def arg_id(name: str):
    """Optional positive id from the query string."""
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        v = int(raw)
    except ValueError:
        raise ValidationError({name: "must be an integer"})
    if not 1 <= v <= MAX_ID:
        raise ValidationError({name: "must be a valid id"})
    return v


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError({"body": "must be a JSON object"})
    return data


def parse_date(val):
    if not val: return None
    if isinstance(val, date): return val
    for fmt in ("%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d"):
        try: return datetime.strptime(str(val), fmt).date()
        except Exception: pass
    return None


class Payload:
    """
    Collects field-level problems while reading a request body so that one
    response can report every invalid field at once.

        p = Payload(json_body())
        month = p.int("month", required=True, min_value=1, max_value=12)
        notes = p.str("notes")
        p.check()   # raises ValidationError if anything was wrong
    """

    def __init__(self, data: dict | None):
        self.data = data or {}
        self.errors: dict[str, str] = {}

    def has(self, name: str) -> bool:
        return name in self.data

    def _raw(self, name, required):
        v = self.data.get(name, _MISSING)
        if v is _MISSING or v is None or (isinstance(v, str) and not v.strip()):
            if required:
                self.errors[name] = "is required"
            return _MISSING
        return v

    def str(self, name, required=False, max_len=None, default=None):
        v = self._raw(name, required)
        if v is _MISSING:
            return default
        if not isinstance(v, str):
            self.errors[name] = "must be a string"
            return default
        v = v.strip()
        if max_len and len(v) > max_len:
            self.errors[name] = f"must be at most {max_len} characters"
        return v

    def email(self, name, required=False):
        v = self.str(name, required=required, max_len=255)
        if v is not None and name not in self.errors and not _EMAIL_RE.match(v):
            self.errors[name] = "must be a valid email"
        return v.lower() if v else v

    def int(self, name, required=False, min_value=None, max_value=None, default=None):
        v = self._raw(name, required)
        if v is _MISSING:
            return default
        if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
            self.errors[name] = "must be an integer"
            return default
        try:
            v = int(v)
        except (TypeError, ValueError, OverflowError):
            self.errors[name] = "must be an integer"
            return default
        # out-of-range values never reach a query
        if min_value is not None and v < min_value:
            self.errors[name] = f"must be >= {min_value}"
            return default
        if max_value is not None and v > max_value:
            self.errors[name] = f"must be <= {max_value}"
            return default
        return v

    def id(self, name, required=False):
        return self.int(name, required=required, min_value=1, max_value=MAX_ID)

    def number(self, name, required=False, min_value=None, max_value=None, positive=False):
        v = self._raw(name, required)
        if v is _MISSING:
            return None
        if isinstance(v, bool):
            self.errors[name] = "must be a number"
            return None
        try:
            v = Decimal(str(v))
        except (InvalidOperation, ValueError):
            self.errors[name] = "must be a number"
            return None
        if not v.is_finite():
            self.errors[name] = "must be a number"
            return None
        if positive and v <= 0:
            self.errors[name] = "must be positive"
        elif min_value is not None and v < min_value:
            self.errors[name] = f"must be >= {min_value}"
        elif max_value is not None and v > max_value:
            self.errors[name] = f"must be <= {max_value}"
        return v

    def bool(self, name, required=False, default=None):
        v = self._raw(name, required)
        if v is _MISSING:
            return default
        if isinstance(v, bool):
            return v
        s = str(v).lower()
        if s in ("true", "1", "yes"): return True
        if s in ("false", "0", "no"): return False
        self.errors[name] = "must be true/false"
        return default

    def date(self, name, required=False):
        v = self._raw(name, required)
        if v is _MISSING:
            return None
        d = parse_date(v)
        if d is None:
            self.errors[name] = "must be a date (YYYY-MM-DD)"
        return d

    def enum(self, name, choices, required=False, default=None):
        v = self._raw(name, required)
        if v is _MISSING:
            return default
        s = str(v).strip().upper()
        if s not in choices:
            self.errors[name] = f"must be one of {', '.join(sorted(choices))}"
            return default
        return s

    def list(self, name, required=False):
        v = self._raw(name, required)
        if v is _MISSING:
            return []
        if not isinstance(v, list):
            self.errors[name] = "must be a list"
            return []
        return v

    def add_error(self, name, message):
        self.errors[name] = message

    def check(self):
        if self.errors:
            raise ValidationError(self.errors)
