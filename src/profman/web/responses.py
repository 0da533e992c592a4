"""Response envelope helpers."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from profman.core.records import Page, Record


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Success envelope: {success: true, data?, message?}."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def error_body(error: dict[str, Any]) -> dict[str, Any]:
    return {"success": False, "error": error}


def records(items: Iterable[Record]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def page_data(
    key: str,
    page: Page,
    serialize: Callable[[Any], dict[str, Any]] = lambda item: item.to_dict(),
) -> dict[str, Any]:
    """Listing payload: {<key>: [...], total, page, totalPages}."""
    return {
        key: [serialize(item) for item in page.items],
        "total": page.total,
        "page": page.page,
        "totalPages": page.total_pages,
    }
