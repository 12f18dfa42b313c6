"""Data models for symbol-level differences between two versions of a file."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from impactscope.parser.models import SymbolKind


class ChangeKind(str, Enum):
    """How a named declaration differs between before and after."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED_SIGNATURE = "modified-signature"
    MODIFIED_BODY = "modified-body"


class SymbolChange(BaseModel):
    """One changed declaration."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: SymbolKind
    change: ChangeKind


class SymbolDiff(BaseModel):
    """Ordered declaration changes for one file.

    Order: after-text source order for added/modified entries, then
    before-text order for names that no longer exist.
    """

    model_config = ConfigDict(frozen=True)

    changes: tuple[SymbolChange, ...] = ()
    before_parsed: bool = True
    after_parsed: bool = True
    # Set whenever before and after differ, even with no symbol changes
    text_changed: bool = False

    @property
    def functions(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.changes if c.kind == SymbolKind.FUNCTION)

    @property
    def classes(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.changes if c.kind == SymbolKind.CLASS)

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def kind_of(self, name: str) -> ChangeKind | None:
        for change in self.changes:
            if change.name == name:
                return change.change
        return None

    def count(self, kind: ChangeKind) -> int:
        return sum(1 for c in self.changes if c.change == kind)
