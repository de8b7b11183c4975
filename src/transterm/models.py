"""Data models for the glossary.

A Term owns an ordered list of translations. Each translation is a
RankedItem: its rank is its position and the item at position 0 is the
preferred rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Union

from dateutil.parser import isoparse

ItemId = Union[int, str]


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """A message shown to the user after an operation (a toast)."""

    level: NoticeLevel
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level.value, "message": self.message}


@dataclass(frozen=True)
class RankedItem:
    """One entry of a ranked list.

    ``position`` and ``is_preferred`` are None for draft entries that have
    not been saved yet; saved entries always carry both.
    """

    id: ItemId
    text: str
    position: int | None = None
    is_preferred: bool | None = None
    parent_id: ItemId | None = None
    usage: str | None = None

    def with_rank(self, position: int) -> RankedItem:
        """Copy of this item placed at ``position``."""
        return replace(self, position=position, is_preferred=position == 0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "position": self.position,
            "is_preferred": self.is_preferred,
            "parent_id": self.parent_id,
            "usage": self.usage,
        }

    @classmethod
    def from_row(cls, data: dict[str, Any]) -> RankedItem:
        """Create from a Translation row as returned by the store."""
        preferred = data.get("is_preferred")
        return cls(
            id=data["id"],
            text=data["text"],
            position=data.get("sort_order"),
            is_preferred=None if preferred is None else bool(preferred),
            parent_id=data.get("term_id"),
            usage=data.get("usage"),
        )


@dataclass(frozen=True)
class PositionWrite:
    """New rank of one persisted item, computed from a single snapshot."""

    id: ItemId
    position: int
    is_preferred: bool
    text: str

    def to_row(self, parent_id: ItemId) -> dict[str, Any]:
        return {
            "id": self.id,
            "term_id": parent_id,
            "text": self.text,
            "sort_order": self.position,
            "is_preferred": self.is_preferred,
        }


@dataclass(frozen=True)
class WriteResult:
    """Outcome of one item write inside a batch."""

    id: ItemId
    ok: bool
    error: str | None = None


@dataclass(frozen=True)
class NewItem:
    """Translation to insert when a term form is saved."""

    text: str
    position: int
    is_preferred: bool
    usage: str | None = None

    def to_row(self, parent_id: ItemId) -> dict[str, Any]:
        return {
            "term_id": parent_id,
            "text": self.text,
            "sort_order": self.position,
            "is_preferred": self.is_preferred,
            "usage": self.usage or None,
        }


@dataclass
class Term:
    """A canonical English term and its ranked Korean translations."""

    id: int
    name: str
    aliases: list[str] = field(default_factory=list)
    note: str | None = None
    created_at: datetime | None = None
    translations: tuple[RankedItem, ...] = ()

    @property
    def preferred(self) -> RankedItem | None:
        """The translation shown as representative, if any."""
        for item in self.translations:
            if item.is_preferred:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "aliases": list(self.aliases),
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "translations": [t.to_dict() for t in self.translations],
        }

    @classmethod
    def from_row(cls, data: dict[str, Any], translations: tuple[RankedItem, ...] = ()) -> Term:
        """Create from a Term row; ``translations`` must already be in display order."""
        created = data.get("created_at")
        if isinstance(created, str):
            created = isoparse(created)
        return cls(
            id=data["id"],
            name=data["name"],
            aliases=list(data.get("aliases") or []),
            note=data.get("note"),
            created_at=created,
            translations=translations,
        )
