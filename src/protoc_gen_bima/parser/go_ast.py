"""AST node definitions for Go type declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class GoIdentExpr:
    """A bare type name: string, int64, Status."""

    name: str


@dataclass
class GoSelectorExpr:
    """A package-qualified type name: time.Time, sql.NullString."""

    package: str
    name: str


@dataclass
class GoStarExpr:
    """A pointer type: *T."""

    elem: GoTypeExpr


@dataclass
class GoArrayExpr:
    """A slice ([]T) or array ([N]T) type."""

    elem: GoTypeExpr
    length: Optional[str] = None


@dataclass
class GoMapExpr:
    key: GoTypeExpr
    value: GoTypeExpr


@dataclass
class GoIndexExpr:
    """A generic instantiation: Null[int], pkg.List[T, U]."""

    base: GoTypeExpr
    args: List[GoTypeExpr] = field(default_factory=list)


@dataclass
class GoOpaqueExpr:
    """A type the generator never converts: func, chan, interface."""

    kind: str


@dataclass
class GoFieldDecl:
    """A struct field line: `A, B int "tag"`; no names means embedded."""

    names: List[str]
    type_expr: GoTypeExpr
    tag: Optional[str] = None

    @property
    def is_embedded(self) -> bool:
        return not self.names


@dataclass
class GoStructExpr:
    fields: List[GoFieldDecl] = field(default_factory=list)


GoTypeExpr = Union[
    GoIdentExpr,
    GoSelectorExpr,
    GoStarExpr,
    GoArrayExpr,
    GoMapExpr,
    GoIndexExpr,
    GoStructExpr,
    GoOpaqueExpr,
]


@dataclass
class GoTypeSpec:
    """`type Name Expr` or `type Name = Expr`."""

    name: str
    type_expr: GoTypeExpr
    is_alias: bool = False
    type_params: List[str] = field(default_factory=list)


@dataclass
class GoImportSpec:
    path: str
    alias: Optional[str] = None


@dataclass
class GoFile:
    """Top-level parsed representation of a Go source file."""

    package: str = ""
    imports: List[GoImportSpec] = field(default_factory=list)
    type_specs: List[GoTypeSpec] = field(default_factory=list)

    def find_struct(self, name: str) -> Optional[GoStructExpr]:
        for spec in self.type_specs:
            if spec.name == name and isinstance(spec.type_expr, GoStructExpr):
                return spec.type_expr
        return None
