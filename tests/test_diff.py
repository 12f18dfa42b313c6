"""Tests for the symbol diff extractor."""

from __future__ import annotations

from impactscope.diff import ChangeKind, diff_symbols
from impactscope.parser.models import SymbolKind


class TestDiffSymbols:
    def test_identical_text_is_empty(self, discount_before: str):
        diff = diff_symbols(discount_before, discount_before, "calculateDiscount.ts")
        assert diff.is_empty
        assert diff.functions == ()

    def test_signature_change(self, discount_before: str, discount_after: str):
        diff = diff_symbols(discount_before, discount_after, "calculateDiscount.ts")
        assert diff.functions == ("calculateDiscount",)
        assert diff.kind_of("calculateDiscount") == ChangeKind.MODIFIED_SIGNATURE

    def test_body_change(self, discount_before: str):
        after = discount_before.replace("price * 0.1", "price * 0.15")
        diff = diff_symbols(discount_before, after, "calculateDiscount.ts")
        assert diff.kind_of("calculateDiscount") == ChangeKind.MODIFIED_BODY

    def test_whitespace_only_change_is_ignored(self, discount_before: str):
        after = discount_before.replace("  return 0;", "      return 0;")
        diff = diff_symbols(discount_before, after, "calculateDiscount.ts")
        assert diff.is_empty

    def test_removed_function(self, discount_before: str):
        diff = diff_symbols(discount_before, "// Function removed\n", "calculateDiscount.ts")
        assert diff.functions == ("calculateDiscount",)
        assert diff.kind_of("calculateDiscount") == ChangeKind.REMOVED

    def test_added_class(self):
        before = "def a():\n    return 1\n"
        after = before + "\n\nclass Cart:\n    pass\n"
        diff = diff_symbols(before, after, "cart.py")
        assert diff.classes == ("Cart",)
        assert diff.functions == ()
        assert diff.kind_of("Cart") == ChangeKind.ADDED

    def test_unchanged_symbols_excluded(self):
        before = "def a():\n    return 1\n\n\ndef b():\n    return 2\n"
        after = "def a():\n    return 1\n\n\ndef b():\n    return 3\n"
        diff = diff_symbols(before, after, "m.py")
        assert [c.name for c in diff.changes] == ["b"]

    def test_output_order(self):
        before = "def gone():\n    pass\n\n\ndef kept():\n    return 1\n"
        after = "def new():\n    pass\n\n\ndef kept():\n    return 2\n"
        diff = diff_symbols(before, after, "m.py")
        assert [(c.name, c.change) for c in diff.changes] == [
            ("new", ChangeKind.ADDED),
            ("kept", ChangeKind.MODIFIED_BODY),
            ("gone", ChangeKind.REMOVED),
        ]

    def test_later_duplicate_wins(self):
        before = "def f():\n    return 1\n\n\ndef f():\n    return 2\n"
        after = "def f():\n    return 2\n"
        assert diff_symbols(before, after, "m.py").is_empty

    def test_unparsable_side_contributes_nothing(self):
        before = "def a():\n    return 1\n"
        diff = diff_symbols(before, "def a(:\n", "m.py")
        assert not diff.after_parsed
        assert diff.before_parsed
        assert diff.kind_of("a") == ChangeKind.REMOVED

    def test_deeply_nested_side_is_unparsable(self):
        deep = "def f():\n    return " + "1+" * 3000 + "1\n"
        diff = diff_symbols("def f():\n    return 1\n", deep, "m.py")
        assert diff.before_parsed
        assert not diff.after_parsed
        assert diff.kind_of("f") == ChangeKind.REMOVED

    def test_comment_only_edit_marks_text_changed(self):
        diff = diff_symbols("def a():\n    pass\n", "# note\ndef a():\n    pass\n", "m.py")
        assert diff.is_empty
        assert diff.text_changed
        assert not diff_symbols("x = 1\n", "x = 1\n", "m.py").text_changed

    def test_unparsable_before_reports_additions(self):
        diff = diff_symbols("class {", "export class Cart {}\n", "cart.ts")
        assert not diff.before_parsed
        assert diff.kind_of("Cart") == ChangeKind.ADDED
        assert diff.changes[0].kind == SymbolKind.CLASS

    def test_unsupported_language(self):
        diff = diff_symbols("# a", "# b", "notes.md")
        assert diff.is_empty
        assert diff.before_parsed and diff.after_parsed

    def test_counts(self):
        before = "def a():\n    pass\n\n\ndef b(x):\n    pass\n"
        after = "def b(x, y):\n    pass\n\n\ndef c():\n    pass\n"
        diff = diff_symbols(before, after, "m.py")
        assert diff.count(ChangeKind.ADDED) == 1
        assert diff.count(ChangeKind.REMOVED) == 1
        assert diff.count(ChangeKind.MODIFIED_SIGNATURE) == 1
