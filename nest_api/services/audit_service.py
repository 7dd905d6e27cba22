from datetime import date, datetime
from decimal import Decimal

from flask import g, has_request_context, request

from nest_api.extensions import db
from nest_api.models.audit import AuditLog


def _jsonable(v):
    if isinstance(v, dict):
        return {k: _jsonable(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    if isinstance(v, Decimal):
        return float(v)
    return v


def record(action, entity_type, entity_id=None, *, company_id=None, actor=None, old=None, new=None):
    """
    Add an AuditLog row to the current session. The caller commits, so the
    log entry lands in the same transaction as the change it describes.
    """
    if actor is None and has_request_context():
        actor = getattr(g, "user", None)

    row = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        company_id=company_id if company_id is not None else getattr(actor, "company_id", None),
        actor_id=getattr(actor, "account_id", None) or getattr(actor, "id", None),
        actor_email=getattr(actor, "email", None),
        old_values=_jsonable(old) if old is not None else None,
        new_values=_jsonable(new) if new is not None else None,
    )
    if has_request_context():
        row.ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
        row.user_agent = (request.headers.get("User-Agent") or "")[:255] or None
    db.session.add(row)
    return row
