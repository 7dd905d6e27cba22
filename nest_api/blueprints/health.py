from flask import Blueprint, current_app
from sqlalchemy import text

from nest_api.common.http import ok
from nest_api.extensions import db

bp = Blueprint("health", __name__, url_prefix="/api")

@bp.get("/health")
def health():
    db_ok = True
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Health check: database unreachable")
        db_ok = False
    return ok({"status": "ok" if db_ok else "degraded", "database": db_ok})
