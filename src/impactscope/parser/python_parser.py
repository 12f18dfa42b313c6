"""Python-specific parser using the built-in ast module. Always available, no extra deps."""

from __future__ import annotations

import ast
from pathlib import PurePosixPath

from impactscope.parser.models import FileSymbols, ImportRef, Symbol, SymbolKind


def parse_python_file(file_path: str, source: str) -> FileSymbols:
    """Parse Python source and extract top-level declarations and imports.

    A `SyntaxError`, or source nested too deeply for `ast` to build or
    unparse, leaves the result with no symbols and one entry in `errors`;
    callers treat that as a parse failure for this side.
    """
    result = FileSymbols(file_path=file_path, language="python")

    try:
        tree = ast.parse(source, filename=file_path)
    except (SyntaxError, ValueError) as e:
        result.errors.append(f"SyntaxError: {e}")
        return result
    except (RecursionError, MemoryError) as e:
        result.errors.append(f"{type(e).__name__}: {e}")
        return result

    symbols: list[Symbol] = []
    try:
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                symbols.append(_extract_function(node))
            elif isinstance(node, ast.ClassDef):
                symbols.append(_extract_class(node))
            elif isinstance(node, (ast.Assign, ast.AnnAssign)):
                symbols.extend(_extract_callable_bindings(node))
    except (RecursionError, MemoryError) as e:
        result.errors.append(f"{type(e).__name__}: {e}")
        return result
    result.symbols = symbols

    is_package_init = PurePosixPath(file_path).name == "__init__.py"
    _extract_imports(tree, result, is_package_init)
    result.is_barrel = is_package_init and _is_barrel(tree)
    return result


def _decorators(node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef) -> str:
    return "".join(f"@{ast.unparse(dec)} " for dec in node.decorator_list)


def _body_text(statements: list[ast.stmt]) -> str:
    # unparse normalizes whitespace and drops comments
    return "\n".join(ast.unparse(stmt) for stmt in statements)


def _extract_function(node: ast.FunctionDef | ast.AsyncFunctionDef) -> Symbol:
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    returns = f" -> {ast.unparse(node.returns)}" if node.returns else ""
    signature = f"{_decorators(node)}{prefix} {node.name}({ast.unparse(node.args)}){returns}"
    return Symbol(
        name=node.name,
        kind=SymbolKind.FUNCTION,
        signature=signature,
        body=_body_text(node.body),
        line_start=node.lineno,
        line_end=node.end_lineno or node.lineno,
    )


def _extract_class(node: ast.ClassDef) -> Symbol:
    bases = [ast.unparse(b) for b in node.bases]
    bases += [ast.unparse(k) for k in node.keywords]
    header = f"class {node.name}({', '.join(bases)})" if bases else f"class {node.name}"
    return Symbol(
        name=node.name,
        kind=SymbolKind.CLASS,
        signature=f"{_decorators(node)}{header}",
        body=_body_text(node.body),
        line_start=node.lineno,
        line_end=node.end_lineno or node.lineno,
    )


def _extract_callable_bindings(node: ast.Assign | ast.AnnAssign) -> list[Symbol]:
    """`name = lambda ...` counts as a named function."""
    if not isinstance(node.value, ast.Lambda):
        return []
    targets = node.targets if isinstance(node, ast.Assign) else [node.target]
    symbols = []
    for target in targets:
        if not isinstance(target, ast.Name):
            continue
        symbols.append(
            Symbol(
                name=target.id,
                kind=SymbolKind.FUNCTION,
                signature=f"{target.id} = lambda {ast.unparse(node.value.args)}",
                body=ast.unparse(node.value.body),
                line_start=node.lineno,
                line_end=node.end_lineno or node.lineno,
            )
        )
    return symbols


def _extract_imports(tree: ast.Module, result: FileSymbols, reexport: bool) -> None:
    """Collect every import in the file, including ones nested in functions."""
    nodes = [n for n in ast.walk(tree) if isinstance(n, (ast.Import, ast.ImportFrom))]
    nodes.sort(key=lambda n: (n.lineno, n.col_offset))

    for node in nodes:
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.imports.append(
                    ImportRef(
                        specifier=alias.name.replace(".", "/"),
                        line=node.lineno,
                        root_relative=True,
                    )
                )
            continue

        module_path = (node.module or "").replace(".", "/")
        if node.level:
            base = "./" if node.level == 1 else "../" * (node.level - 1)
            target = f"{base}{module_path}" if module_path else base
            root_relative = False
        else:
            target = module_path
            root_relative = True

        # "from pkg import name" may name a submodule; try it before the package
        for alias in node.names:
            if alias.name == "*":
                continue
            sub = f"{target.rstrip('/')}/{alias.name}" if target else alias.name
            result.imports.append(
                ImportRef(
                    specifier=sub,
                    line=node.lineno,
                    reexport=reexport,
                    root_relative=root_relative,
                )
            )
        if target:
            result.imports.append(
                ImportRef(
                    specifier=target,
                    line=node.lineno,
                    reexport=reexport,
                    root_relative=root_relative,
                )
            )


def _is_barrel(tree: ast.Module) -> bool:
    """A package __init__ that only imports names and lists __all__."""
    has_import = False
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            has_import = True
        elif isinstance(node, ast.Expr) and isinstance(node.value, ast.Constant):
            continue  # docstring
        elif isinstance(node, ast.Assign) and all(
            isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets
        ):
            continue
        else:
            return False
    return has_import
