import math

from fastapi import Query
from pydantic import BaseModel


class PageParams(BaseModel):
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def paginate(query, params: PageParams, *order_by) -> dict:
    """Apply offset/limit to a query and wrap the result in the list envelope."""
    total = query.order_by(None).count()
    if order_by:
        query = query.order_by(*order_by)
    items = query.offset(params.offset).limit(params.limit).all()
    return {
        "data": items,
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "total_pages": math.ceil(total / params.limit) if total else 0,
    }
