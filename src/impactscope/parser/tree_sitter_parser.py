"""Tree-sitter based parser for JavaScript and TypeScript sources."""

from __future__ import annotations

from functools import lru_cache

from impactscope.parser.models import FileSymbols, ImportRef, Symbol, SymbolKind

# language -> (grammar module, factory function)
_TS_LANGUAGE_MODULES = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
# Values that turn `const name = ...` into a named callable
_CALLABLE_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
_IMPORT_SOURCE_NODES = {"import_statement", "export_statement", "import_require_clause"}


def is_available(language: str | None = None) -> bool:
    """Check if tree-sitter and the required language grammar are available."""
    try:
        import tree_sitter  # noqa: F401
    except ImportError:
        return False

    if language is None:
        return True

    entry = _TS_LANGUAGE_MODULES.get(language)
    if not entry:
        return False

    try:
        __import__(entry[0])
        return True
    except ImportError:
        return False


@lru_cache(maxsize=None)
def _get_language(lang: str):
    """Get a tree-sitter Language object for the given language."""
    from tree_sitter import Language

    entry = _TS_LANGUAGE_MODULES.get(lang)
    if not entry:
        raise ValueError(f"No tree-sitter grammar for language: {lang}")

    module_name, factory = entry
    module = __import__(module_name)
    return Language(getattr(module, factory)())


def parse_tree_sitter_file(file_path: str, language: str, source: str) -> FileSymbols:
    """Parse a JS/TS file and extract top-level declarations and imports.

    Tree-sitter never raises on bad input; a tree that contains ERROR or
    MISSING nodes is reported through `errors` and yields nothing.
    """
    from tree_sitter import Parser

    result = FileSymbols(file_path=file_path, language=language)
    source_bytes = source.encode("utf-8")

    try:
        parser = Parser(_get_language(language))
        tree = parser.parse(source_bytes)
    except Exception as e:
        result.errors.append(f"tree-sitter parse error: {e}")
        return result

    root = tree.root_node
    if root.has_error:
        result.errors.append(f"tree-sitter: syntax error in {file_path}")
        return result

    for child in root.named_children:
        result.symbols.extend(_extract_declarations(child, source_bytes))

    result.imports.extend(_extract_imports(root))
    result.is_barrel = _is_barrel(root)
    return result


def _text(source: bytes, start: int, end: int) -> str:
    return " ".join(source[start:end].decode("utf-8", errors="replace").split())


def _extract_declarations(node, source: bytes) -> list[Symbol]:
    """Turn one top-level statement into zero or more symbols."""
    if node.type == "export_statement":
        declaration = node.child_by_field_name("declaration")
        return _extract_declarations(declaration, source) if declaration else []

    if node.type in _FUNCTION_DECLARATIONS or node.type in _CLASS_DECLARATIONS:
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name is None or body is None:
            return []
        kind = SymbolKind.CLASS if node.type in _CLASS_DECLARATIONS else SymbolKind.FUNCTION
        return [_symbol(name, kind, node, body, source)]

    if node.type in _VARIABLE_DECLARATIONS:
        symbols = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is None or name.type != "identifier" or value is None:
                continue
            if value.type in _CALLABLE_VALUES:
                body = value.child_by_field_name("body")
                if body is not None:
                    symbols.append(_symbol(name, SymbolKind.FUNCTION, declarator, body, source))
            elif value.type == "class":
                body = value.child_by_field_name("body")
                if body is not None:
                    symbols.append(_symbol(name, SymbolKind.CLASS, declarator, body, source))
        return symbols

    return []


def _symbol(name_node, kind: SymbolKind, decl_node, body_node, source: bytes) -> Symbol:
    return Symbol(
        name=name_node.text.decode("utf-8"),
        kind=kind,
        signature=_text(source, decl_node.start_byte, body_node.start_byte),
        body=_text(source, body_node.start_byte, body_node.end_byte),
        line_start=decl_node.start_point[0] + 1,
        line_end=decl_node.end_point[0] + 1,
    )


def _string_value(node) -> str | None:
    if node is None or node.type != "string":
        return None
    raw = node.text.decode("utf-8")
    return raw[1:-1] if len(raw) >= 2 else None


def _extract_imports(root) -> list[ImportRef]:
    """Find import/export-from/require specifiers anywhere in the tree."""
    refs = []
    stack = [root]
    while stack:
        node = stack.pop()
        target = None
        if node.type in _IMPORT_SOURCE_NODES:
            target = _string_value(node.child_by_field_name("source"))
        elif node.type == "call_expression":
            func = node.child_by_field_name("function")
            args = node.child_by_field_name("arguments")
            if func is not None and func.type == "identifier" and func.text == b"require" and args:
                first = args.named_children[0] if args.named_children else None
                target = _string_value(first)
        if target:
            refs.append(
                ImportRef(
                    specifier=target,
                    line=node.start_point[0] + 1,
                    reexport=node.type == "export_statement",
                )
            )
        stack.extend(reversed(node.children))
    refs.sort(key=lambda r: r.line)
    return refs


def _is_barrel(root) -> bool:
    """Only imports and re-exports at the top level."""
    has_reexport = False
    for child in root.named_children:
        if child.type in ("comment", "import_statement"):
            continue
        if child.type == "export_statement" and child.child_by_field_name("declaration") is None \
                and child.child_by_field_name("value") is None:
            has_reexport = True
            continue
        return False
    return has_reexport
