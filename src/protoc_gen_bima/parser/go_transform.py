"""Transform Go AST nodes into the generator's ModelFieldMap."""

from __future__ import annotations

from typing import Dict, Optional

from protoc_gen_bima.models import ModelFieldMap
from protoc_gen_bima.naming import clean_package_name

from .go_ast import (
    GoFile,
    GoIdentExpr,
    GoSelectorExpr,
    GoStarExpr,
    GoStructExpr,
    GoTypeExpr,
)


def transform_struct(struct: GoStructExpr, package_names: Optional[Dict[str, str]] = None) -> ModelFieldMap:
    """Build the field name -> declared type map for one struct.

    Embedded fields and fields whose type is not a (pointer to a) plain or
    package-qualified name are left out. `package_names` maps import aliases
    to the name of the package they stand for.
    """
    fields: ModelFieldMap = {}
    for decl in struct.fields:
        if decl.is_embedded:
            continue
        type_str = render_type(decl.type_expr, package_names)
        if type_str is None:
            continue
        for name in decl.names:
            fields[name] = type_str
    return fields


def import_aliases(ast: GoFile) -> Dict[str, str]:
    """alias -> package name for renamed imports; blank and dot imports are skipped."""
    aliases: Dict[str, str] = {}
    for imp in ast.imports:
        if imp.alias and imp.alias not in ("_", "."):
            aliases[imp.alias] = clean_package_name(imp.path)
    return aliases


def find_model_fields(ast: GoFile, type_name: str) -> Optional[ModelFieldMap]:
    """Return the field map of struct `type_name`, or None if not declared."""
    struct = ast.find_struct(type_name)
    if struct is None:
        return None
    return transform_struct(struct, import_aliases(ast))


def render_type(expr: GoTypeExpr, package_names: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Render `T`, `*T`, `pkg.T` and `*pkg.T`; anything else is None."""
    if isinstance(expr, GoIdentExpr):
        return expr.name
    if isinstance(expr, GoSelectorExpr):
        package = (package_names or {}).get(expr.package, expr.package)
        return f"{package}.{expr.name}"
    if isinstance(expr, GoStarExpr):
        elem = expr.elem
        if isinstance(elem, (GoIdentExpr, GoSelectorExpr)):
            return "*" + render_type(elem, package_names)
    return None
