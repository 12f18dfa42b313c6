"""Declaration and import extraction for JavaScript, TypeScript and Python."""

from impactscope.parser.core import collect_files, parse_source, read_source
from impactscope.parser.models import FileSymbols, ImportRef, Symbol, SymbolKind

__all__ = [
    "FileSymbols",
    "ImportRef",
    "Symbol",
    "SymbolKind",
    "collect_files",
    "parse_source",
    "read_source",
]
