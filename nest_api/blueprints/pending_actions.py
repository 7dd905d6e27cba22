from flask import Blueprint, g

from nest_api.common.auth import current_company_id, requires_user
from nest_api.common.http import ok
from nest_api.services.pending_actions import collect

bp = Blueprint("pending_actions", __name__, url_prefix="/api/pending-actions")

@bp.get("")
@requires_user
def list_pending_actions():
    current_company_id()
    items = collect(g.user)
    return ok(items, total=len(items))
