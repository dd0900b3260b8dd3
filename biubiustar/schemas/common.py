"""Response envelope and pagination shapes shared by every router."""
import math
from typing import Any

from pydantic import AnyHttpUrl, BaseModel, Field, TypeAdapter

_http_url = TypeAdapter(AnyHttpUrl)


def ok(data: Any = None, message: str | None = None) -> dict:
    """Success envelope: {success: true, data?, message?}."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def check_url(value: str | None, allow_empty: bool = False) -> str | None:
    """Validate an http(s) URL but keep the caller's original string."""
    if value is None or (allow_empty and value == ""):
        return value
    _http_url.validate_python(value)
    return value


def reject_null(value: Any) -> Any:
    """Before-validator for optional update fields backed by NOT NULL columns:
    omitted fields are skipped, explicit nulls fail validation."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class Pagination(BaseModel):
    page: int
    limit: int
    has_more: bool = Field(serialization_alias="hasMore")

    @classmethod
    def for_page(cls, page: int, limit: int, returned: int) -> "Pagination":
        return cls(page=page, limit=limit, has_more=returned == limit)


class AdminPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")

    @classmethod
    def for_total(cls, page: int, limit: int, total: int) -> "AdminPagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)
