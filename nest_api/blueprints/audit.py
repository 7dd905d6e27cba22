from flask import Blueprint, g, request

from nest_api.common.auth import requires_permission
from nest_api.common.http import ok, iso
from nest_api.common.paging import paginate
from nest_api.common.validation import arg_id
from nest_api.models.audit import AuditLog

bp = Blueprint("audit", __name__, url_prefix="/api/admin/audit")

def _row(x: AuditLog):
    return {
        "id": x.id,
        "company_id": x.company_id,
        "entity_type": x.entity_type,
        "entity_id": x.entity_id,
        "action": x.action,
        "actor_id": x.actor_id,
        "actor_email": x.actor_email,
        "old_values": x.old_values,
        "new_values": x.new_values,
        "ip_address": x.ip_address,
        "user_agent": x.user_agent,
        "created_at": iso(x.created_at),
    }

@bp.get("")
@requires_permission("read", "audit")
def list_audit():
    q = AuditLog.query
    # superusers outside any company see the whole trail
    if g.user.company_id is not None or not g.user.is_superuser:
        q = q.filter(AuditLog.company_id == g.user.company_id)

    for arg, col in (("entity_type", AuditLog.entity_type), ("entity_id", AuditLog.entity_id), ("action", AuditLog.action)):
        v = (request.args.get(arg) or "").strip()
        if v:
            q = q.filter(col == v)
    actor = arg_id("actor_id")
    if actor:
        q = q.filter(AuditLog.actor_id == actor)

    q = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    items, meta = paginate(q)
    return ok([_row(x) for x in items], **meta)
