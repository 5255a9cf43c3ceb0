"""Page/limit handling shared by list endpoints."""
import math
from typing import List, Tuple

from sqlalchemy.orm import Query

from app.schemas.common import Pagination

MAX_PAGE_SIZE = 100


def paginate(query: Query, page: int, limit: int) -> Tuple[List, Pagination]:
    """Apply offset/limit to `query` (already ordered) and count the unpaged total."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
