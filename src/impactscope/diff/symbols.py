"""Symbol diff extractor - which functions and classes changed between two texts.

Both sides are parsed into ordered tables of top-level declarations and
compared by name:

- only in after                        -> added
- only in before                       -> removed
- in both, signature text differs      -> modified-signature
- same signature, body text differs    -> modified-body

A side that fails to parse contributes no symbols, so every declaration
on the other side shows up as added or removed.
"""

from __future__ import annotations

import logging

from impactscope.diff.models import ChangeKind, SymbolChange, SymbolDiff
from impactscope.parser.core import parse_source
from impactscope.parser.models import Symbol

_logger = logging.getLogger("impactscope.diff")


def diff_symbols(
    before: str,
    after: str,
    file_path: str,
    logger: logging.Logger | None = None,
) -> SymbolDiff:
    """Compute the declaration-level difference between `before` and `after`.

    `file_path` selects the language. Identical texts return an empty diff
    without parsing.
    """
    log = logger or _logger
    if before == after:
        return SymbolDiff()

    before_result = parse_source(file_path, before)
    after_result = parse_source(file_path, after)
    for side, result in (("before", before_result), ("after", after_result)):
        if result.errors:
            log.warning(f"Could not parse {side} version of {file_path}: {result.errors[0]}")

    old = _symbol_table(before_result.symbols if before_result.parsed else [])
    new = _symbol_table(after_result.symbols if after_result.parsed else [])

    changes: list[SymbolChange] = []
    for name, sym in new.items():
        previous = old.get(name)
        if previous is None:
            change = ChangeKind.ADDED
        elif previous.signature != sym.signature:
            change = ChangeKind.MODIFIED_SIGNATURE
        elif previous.body != sym.body:
            change = ChangeKind.MODIFIED_BODY
        else:
            continue
        changes.append(SymbolChange(name=name, kind=sym.kind, change=change))

    for name, sym in old.items():
        if name not in new:
            changes.append(SymbolChange(name=name, kind=sym.kind, change=ChangeKind.REMOVED))

    log.debug(
        f"{file_path}: {len(old)} symbols before, {len(new)} after, {len(changes)} changed"
    )
    return SymbolDiff(
        changes=tuple(changes),
        before_parsed=before_result.parsed,
        after_parsed=after_result.parsed,
        text_changed=True,
    )


def _symbol_table(symbols: list[Symbol]) -> dict[str, Symbol]:
    """Name -> symbol in source order; a later duplicate replaces the earlier one."""
    table: dict[str, Symbol] = {}
    for sym in symbols:
        table.pop(sym.name, None)
        table[sym.name] = sym
    return table
