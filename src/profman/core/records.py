"""Shared record helpers.

Records are dataclasses with snake_case attributes stored as documents with
camelCase keys (the document and wire format shared with the frontend).
"""

from __future__ import annotations

import math
from dataclasses import MISSING, dataclass, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar

from profman.db import DELETE_FIELD

R = TypeVar("R", bound="Record")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Current UTC time as ISO-8601 string."""
    return utc_now().isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_camel(name: str) -> str:
    """snake_case -> camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _dump(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


class Record:
    """Mixin for dataclass records with camelCase document mapping.

    Subclasses list nested record types in `nested`, e.g.
    ``nested = {"questions": QuizQuestion}``.
    """

    nested: ClassVar[dict[str, type[Record]]] = {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase document; None values are omitted."""
        result = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            result[to_camel(f.name)] = _dump(value)
        return result

    @classmethod
    def from_dict(cls: type[R], data: dict[str, Any]) -> R:
        """Build a record from a camelCase document; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = to_camel(f.name)
            if key not in data:
                if f.default is MISSING and f.default_factory is MISSING:
                    kwargs[f.name] = None
                continue
            value = data[key]
            nested_type = cls.nested.get(f.name)
            if nested_type is not None and value is not None:
                if isinstance(value, list):
                    value = [nested_type.from_dict(v) for v in value]
                else:
                    value = nested_type.from_dict(value)
            kwargs[f.name] = value
        return cls(**kwargs)


# =============================================================================
# SOFT DELETE
# =============================================================================


def soft_delete_fields() -> dict[str, Any]:
    """Fields written when a record is soft-deleted."""
    now = now_iso()
    return {"isDeleted": True, "isActive": False, "deletedAt": now, "updatedAt": now}


def restore_fields() -> dict[str, Any]:
    """Fields written when a soft-deleted record is restored."""
    return {
        "isDeleted": False,
        "isActive": True,
        "deletedAt": DELETE_FIELD,
        "updatedAt": now_iso(),
    }


# =============================================================================
# LISTING
# =============================================================================


@dataclass
class Page:
    """One page of a filtered listing."""

    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def matches_search(document: dict[str, Any], search: str | None, keys: tuple[str, ...]) -> bool:
    """Case-insensitive substring match across the given document keys."""
    if not search:
        return True
    needle = search.lower()
    return any(needle in str(document.get(key) or "").lower() for key in keys)


def paginate(items: list[Any], page: int = 1, limit: int = 10) -> Page:
    """Slice items for the requested 1-based page."""
    page = max(page, 1)
    start = (page - 1) * limit
    return Page(items=items[start : start + limit], total=len(items), page=page, limit=limit)
