from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


def reject_null(value):
    """PATCH bodies may omit a field, but not clear a required one."""
    if value is None:
        raise ValueError("may be omitted but not set to null")
    return value
