# nest_api/common/paging.py
from flask import request
from sqlalchemy import asc, desc, or_

DEFAULT_PAGE = 1
DEFAULT_SIZE = 20
MAX_SIZE = 100

def page_limit():
    try:
        page = max(int(request.args.get("page", DEFAULT_PAGE)), 1)
    except Exception:
        page = DEFAULT_PAGE
    try:
        size = int(request.args.get("size", DEFAULT_SIZE))
        size = max(1, min(size, MAX_SIZE))
    except Exception:
        size = DEFAULT_SIZE
    return page, size

def sort_params(allowed: dict[str, object]):
    """
    allowed: {"name": Model.name, "created_at": Model.created_at, ...}
    ?sort=name,-created_at  => returns list of (column, asc:bool)
    Unknown keys ignored.
    """
    raw = request.args.get("sort", "")
    items = []
    for part in [p.strip() for p in raw.split(",") if p.strip()]:
        asc_order = True
        key = part
        if part.startswith("-"):
            asc_order = False
            key = part[1:]
        col = allowed.get(key)
        if col is not None:
            items.append((col, asc_order))
    return items

def text_q():
    q = request.args.get("q", "")
    return q.strip() or None

def apply_sort(query, allowed: dict[str, object], default):
    sorts = sort_params(allowed)
    for col, asc_order in sorts:
        query = query.order_by(asc(col) if asc_order else desc(col))
    if not sorts:
        query = query.order_by(default)
    return query

def apply_q_search(query, *cols):
    s = text_q()
    if not s:
        return query
    like = f"%{s}%"
    return query.filter(or_(*[c.ilike(like) for c in cols]))

def paginate(query):
    """Returns (items, meta) for the current request's page/size."""
    page, size = page_limit()
    total = query.count()
    items = query.offset((page - 1) * size).limit(size).all()
    return items, {"page": page, "size": size, "total": total}
