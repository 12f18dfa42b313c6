"""Data models for parsed declarations and import references."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, Field


class SymbolKind(str, Enum):
    """Types of top-level declarations tracked by the diff."""

    FUNCTION = "function"
    CLASS = "class"


class Symbol(BaseModel):
    """A top-level named declaration (function, class or callable binding)."""

    name: str
    kind: SymbolKind
    signature: str = ""  # header up to the body, whitespace collapsed
    body: str = ""  # body text, whitespace collapsed
    line_start: int = 0
    line_end: int = 0


class ImportRef(BaseModel):
    """One import/require/re-export specifier found in a file."""

    specifier: str
    line: int = 0
    reexport: bool = False
    # Python absolute imports: resolved against the project root first
    root_relative: bool = False


class FileSymbols(BaseModel):
    """All declarations and imports extracted from a single file."""

    file_path: str
    language: str
    symbols: list[Symbol] = Field(default_factory=list)
    imports: list[ImportRef] = Field(default_factory=list)
    is_barrel: bool = False
    errors: list[str] = Field(default_factory=list)

    @property
    def parsed(self) -> bool:
        return not self.errors


# Language detection by file extension
EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}


def detect_language(file_path: str) -> str | None:
    """Detect programming language from file extension."""
    ext = PurePosixPath(file_path).suffix.lower()
    return EXTENSION_LANGUAGE_MAP.get(ext)
