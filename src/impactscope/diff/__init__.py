"""Symbol-level diffing of before/after source text."""

from impactscope.diff.models import ChangeKind, SymbolChange, SymbolDiff
from impactscope.diff.symbols import diff_symbols

__all__ = ["ChangeKind", "SymbolChange", "SymbolDiff", "diff_symbols"]
