"""Response envelopes returned by remote property-management APIs.

List endpoints answer either with a bare JSON array or with a page
envelope. Both shapes parse into :data:`PagedOrArrayResponse`, and callers
get the items through :func:`unwrap_items` instead of probing the payload.
"""

from typing import Generic, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Paged envelope: ``{"content": [...], "totalElements": n, ...}``."""

    content: list[T]
    total_elements: int | None = Field(default=None, alias="totalElements")
    total_pages: int | None = Field(default=None, alias="totalPages")
    number: int | None = None
    size: int | None = None

    model_config = {"populate_by_name": True}


PagedOrArrayResponse = Union[Page[T], list[T]]


def parse_paged_or_array(item_type: type[T], payload: object) -> PagedOrArrayResponse[T]:
    """Validate a raw JSON payload as either a page or a bare array of item_type."""
    adapter = TypeAdapter(Union[Page[item_type], list[item_type]])  # type: ignore[valid-type]
    return adapter.validate_python(payload)


def unwrap_items(response: PagedOrArrayResponse[T]) -> list[T]:
    """Return the items of a page or array response."""
    if isinstance(response, Page):
        return list(response.content)
    return list(response)
