from flask import Blueprint

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.http import ok
from nest_api.services.activity import recent

bp = Blueprint("activity", __name__, url_prefix="/api/activity")

@bp.get("")
@requires_permission("read", "audit")
def list_activity():
    items = recent(current_company_id())
    return ok(items, total=len(items))
