"""API surface extraction for Python sources using the standard ``ast`` module."""

import ast
from typing import List, Optional, Set

from docsync.errors import ParseError
from docsync.models.api import (
    APIElement,
    ElementKind,
    ExportStatement,
    ImportStatement,
    Parameter,
    ParsedCode,
    SourceLocation,
)

PROTOCOL_BASES = {"Protocol", "typing.Protocol", "typing_extensions.Protocol"}
TYPE_ALIAS_ANNOTATIONS = {"TypeAlias", "typing.TypeAlias", "typing_extensions.TypeAlias"}


def _unparse(node: Optional[ast.AST]) -> Optional[str]:
    return ast.unparse(node) if node is not None else None


def _location(node: ast.AST) -> SourceLocation:
    return SourceLocation(
        start_line=node.lineno,
        end_line=getattr(node, "end_lineno", None) or node.lineno,
        start_column=node.col_offset,
        end_column=getattr(node, "end_col_offset", None) or 0,
    )


def _parameters(args: ast.arguments, method: bool = False) -> List[Parameter]:
    params: List[Parameter] = []

    positional = [*args.posonlyargs, *args.args]
    defaults = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
    for arg, default in zip(positional, defaults):
        params.append(
            Parameter(
                name=arg.arg,
                type=_unparse(arg.annotation),
                optional=default is not None,
                default_value=_unparse(default),
            )
        )

    if args.vararg:
        params.append(Parameter(name=f"*{args.vararg.arg}", type=_unparse(args.vararg.annotation), optional=True))

    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(
            Parameter(
                name=arg.arg,
                type=_unparse(arg.annotation),
                optional=default is not None,
                default_value=_unparse(default),
            )
        )

    if args.kwarg:
        params.append(Parameter(name=f"**{args.kwarg.arg}", type=_unparse(args.kwarg.annotation), optional=True))

    if method and params and params[0].name in ("self", "cls"):
        params = params[1:]
    return params


def _is_all(target: ast.expr) -> bool:
    return isinstance(target, ast.Name) and target.id == "__all__"


def _literal_names(node: Optional[ast.expr]) -> Optional[List[str]]:
    """Names from a list or tuple literal of strings, else None."""
    if not isinstance(node, (ast.List, ast.Tuple)):
        return None
    if not all(isinstance(elt, ast.Constant) and isinstance(elt.value, str) for elt in node.elts):
        return None
    return [elt.value for elt in node.elts]


def _dunder_all(tree: ast.Module) -> Optional[Set[str]]:
    """Collect ``__all__`` from plain, annotated and augmented assignments.

    Returns None when there is no ``__all__`` or it is not a literal we can read.
    """
    exported: Optional[Set[str]] = None
    for stmt in tree.body:
        if isinstance(stmt, ast.Assign) and any(_is_all(t) for t in stmt.targets):
            value = stmt.value
        elif isinstance(stmt, ast.AnnAssign) and _is_all(stmt.target) and stmt.value is not None:
            value = stmt.value
        elif isinstance(stmt, ast.AugAssign) and _is_all(stmt.target) and isinstance(stmt.op, ast.Add):
            names = _literal_names(stmt.value)
            if exported is None or names is None:
                return None
            exported.update(names)
            continue
        else:
            continue

        names = _literal_names(value)
        if names is None:
            return None
        exported = set(names)
    return exported


class PythonAPIParser:
    """Extracts top-level functions, classes, type aliases and constants."""

    def parse(self, source: str, language: str = "python") -> ParsedCode:
        if language != "python":
            raise ParseError(f"Unsupported language: {language}")

        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            raise ParseError(f"Syntax error at line {e.lineno}: {e.msg}") from e

        exported = _dunder_all(tree)
        apis: List[APIElement] = []
        imports: List[ImportStatement] = []

        for stmt in tree.body:
            if isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    imports.append(ImportStatement(source=alias.name, specifiers=[alias.asname or alias.name]))
            elif isinstance(stmt, ast.ImportFrom):
                imports.append(
                    ImportStatement(
                        source="." * stmt.level + (stmt.module or ""),
                        specifiers=[alias.asname or alias.name for alias in stmt.names],
                    )
                )
            else:
                element = self._element(stmt)
                if element:
                    element.is_public = not element.name.startswith("_") and (
                        exported is None or element.name in exported
                    )
                    apis.append(element)

        exports = [ExportStatement(name=api.name) for api in apis if api.is_public]
        return ParsedCode(apis=apis, imports=imports, exports=exports, ast=tree)

    def _element(self, stmt: ast.stmt) -> Optional[APIElement]:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return self._function(stmt)
        if isinstance(stmt, ast.ClassDef):
            return self._class(stmt)
        if hasattr(ast, "TypeAlias") and isinstance(stmt, ast.TypeAlias):
            return APIElement(
                kind=ElementKind.TYPE,
                name=stmt.name.id,
                signature=ast.unparse(stmt),
                location=_location(stmt),
            )
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            annotation = ast.unparse(stmt.annotation)
            if annotation in TYPE_ALIAS_ANNOTATIONS:
                return APIElement(
                    kind=ElementKind.TYPE,
                    name=stmt.target.id,
                    signature=f"{stmt.target.id}: {annotation} = {_unparse(stmt.value)}",
                    location=_location(stmt),
                )
            if stmt.target.id.isupper():
                return self._constant(stmt.target.id, stmt, annotation)
        if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
            name = stmt.targets[0].id
            if name.isupper():
                return self._constant(name, stmt, None)
        return None

    def _function(self, node) -> APIElement:
        prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
        returns = _unparse(node.returns)
        signature = f"{prefix} {node.name}({ast.unparse(node.args)})"
        if returns:
            signature += f" -> {returns}"
        return APIElement(
            kind=ElementKind.FUNCTION,
            name=node.name,
            signature=signature,
            parameters=_parameters(node.args),
            return_type=returns,
            documentation_text=ast.get_docstring(node),
            location=_location(node),
        )

    def _class(self, node: ast.ClassDef) -> APIElement:
        bases = [ast.unparse(base) for base in node.bases]
        kind = ElementKind.INTERFACE if PROTOCOL_BASES.intersection(bases) else ElementKind.CLASS
        signature = f"class {node.name}({', '.join(bases)})" if bases else f"class {node.name}"

        parameters = None
        for item in node.body:
            if isinstance(item, ast.FunctionDef) and item.name == "__init__":
                parameters = _parameters(item.args, method=True)
                break

        return APIElement(
            kind=kind,
            name=node.name,
            signature=signature,
            parameters=parameters,
            documentation_text=ast.get_docstring(node),
            location=_location(node),
        )

    def _constant(self, name: str, stmt: ast.stmt, annotation: Optional[str]) -> APIElement:
        signature = f"{name}: {annotation}" if annotation else name
        if stmt.value is not None:
            signature += f" = {_unparse(stmt.value)}"
        return APIElement(
            kind=ElementKind.CONSTANT,
            name=name,
            signature=signature,
            return_type=annotation,
            location=_location(stmt),
        )
