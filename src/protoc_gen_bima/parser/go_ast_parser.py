"""Recursive descent parser for Go type declarations.

Consumes a token stream from go_tokenizer and produces Go AST nodes. Function
bodies, variables and constants are skipped without being interpreted.
"""

from __future__ import annotations

from typing import List, Optional

from .go_ast import (
    GoArrayExpr,
    GoFieldDecl,
    GoFile,
    GoIdentExpr,
    GoImportSpec,
    GoIndexExpr,
    GoMapExpr,
    GoOpaqueExpr,
    GoSelectorExpr,
    GoStarExpr,
    GoStructExpr,
    GoTypeExpr,
    GoTypeSpec,
)
from .go_tokenizer import GoToken, GoTokenType

_OPENERS = {GoTokenType.LBRACE, GoTokenType.LPAREN, GoTokenType.LBRACKET}
_CLOSERS = {GoTokenType.RBRACE, GoTokenType.RPAREN, GoTokenType.RBRACKET}


class GoParseError(Exception):
    def __init__(self, message: str, token: GoToken | None = None):
        if token:
            super().__init__(f"Line {token.line}:{token.col}: {message}")
        else:
            super().__init__(message)


class GoParser:
    """Recursive descent parser for Go source files."""

    def __init__(self, tokens: List[GoToken]):
        self._tokens = tokens
        self._pos = 0

    # -- public API --

    def parse(self) -> GoFile:
        """Parse the full token stream into a GoFile AST."""
        go_file = GoFile()

        self._skip_semicolons()
        self._expect(GoTokenType.PACKAGE)
        go_file.package = self._expect(GoTokenType.IDENT).value
        self._expect_end_of_decl()

        while not self._at_end():
            tt = self._peek().type

            if tt == GoTokenType.SEMICOLON:
                self._advance()
            elif tt == GoTokenType.IMPORT:
                go_file.imports.extend(self._parse_import_decl())
            elif tt == GoTokenType.TYPE:
                go_file.type_specs.extend(self._parse_type_decl())
            else:
                self._skip_declaration()

        return go_file

    # -- import parsing --

    def _parse_import_decl(self) -> List[GoImportSpec]:
        self._expect(GoTokenType.IMPORT)
        if self._consume_if(GoTokenType.LPAREN) is None:
            spec = self._parse_import_spec()
            self._expect_end_of_decl()
            return [spec]

        specs: List[GoImportSpec] = []
        self._skip_semicolons()
        while self._peek().type != GoTokenType.RPAREN:
            specs.append(self._parse_import_spec())
            self._expect_end_of_decl()
            self._skip_semicolons()
        self._expect(GoTokenType.RPAREN)
        self._expect_end_of_decl()
        return specs

    def _parse_import_spec(self) -> GoImportSpec:
        alias = None
        if self._peek().type == GoTokenType.IDENT:
            alias = self._advance().value
        elif self._peek().type == GoTokenType.DOT:
            alias = self._advance().value
        path = self._expect(GoTokenType.STRING).value
        return GoImportSpec(path=path[1:-1], alias=alias)

    # -- type declaration parsing --

    def _parse_type_decl(self) -> List[GoTypeSpec]:
        """Parse `type Name T` or a parenthesized group of type specs."""
        self._expect(GoTokenType.TYPE)
        if self._consume_if(GoTokenType.LPAREN) is None:
            spec = self._parse_type_spec()
            self._expect_end_of_decl()
            return [spec]

        specs: List[GoTypeSpec] = []
        self._skip_semicolons()
        while self._peek().type != GoTokenType.RPAREN:
            specs.append(self._parse_type_spec())
            self._expect_end_of_decl()
            self._skip_semicolons()
        self._expect(GoTokenType.RPAREN)
        self._expect_end_of_decl()
        return specs

    def _parse_type_spec(self) -> GoTypeSpec:
        name = self._expect(GoTokenType.IDENT).value
        type_params: List[str] = []

        if self._is_type_param_list():
            type_params = self._parse_type_params()

        is_alias = self._consume_if(GoTokenType.ASSIGN) is not None
        type_expr = self._parse_type()
        return GoTypeSpec(
            name=name,
            type_expr=type_expr,
            is_alias=is_alias,
            type_params=type_params,
        )

    def _is_type_param_list(self) -> bool:
        """`[T any]` after a type name is a parameter list, `[4]T` is not."""
        return (
            self._peek().type == GoTokenType.LBRACKET
            and self._peek_at(1).type == GoTokenType.IDENT
            and self._peek_at(2).type not in (GoTokenType.RBRACKET, GoTokenType.DOT)
        )

    def _parse_type_params(self) -> List[str]:
        self._expect(GoTokenType.LBRACKET)
        names: List[str] = []
        expect_name = True
        depth = 1
        while depth > 0 and not self._at_end():
            tok = self._advance()
            if tok.type in _OPENERS:
                depth += 1
            elif tok.type in _CLOSERS:
                depth -= 1
            elif depth == 1 and tok.type == GoTokenType.COMMA:
                expect_name = True
            elif depth == 1 and expect_name and tok.type == GoTokenType.IDENT:
                names.append(tok.value)
                expect_name = self._peek().type == GoTokenType.COMMA
        return names

    # -- type expressions --

    def _parse_type(self) -> GoTypeExpr:
        tok = self._peek()
        tt = tok.type

        if tt == GoTokenType.IDENT:
            return self._parse_type_name()

        if tt == GoTokenType.STAR:
            self._advance()
            return GoStarExpr(elem=self._parse_type())

        if tt == GoTokenType.LPAREN:
            self._advance()
            inner = self._parse_type()
            self._expect(GoTokenType.RPAREN)
            return inner

        if tt == GoTokenType.LBRACKET:
            self._advance()
            length = None
            if self._peek().type != GoTokenType.RBRACKET:
                length = self._collect_until(GoTokenType.RBRACKET)
            self._expect(GoTokenType.RBRACKET)
            return GoArrayExpr(elem=self._parse_type(), length=length)

        if tt == GoTokenType.MAP:
            self._advance()
            self._expect(GoTokenType.LBRACKET)
            key = self._parse_type()
            self._expect(GoTokenType.RBRACKET)
            return GoMapExpr(key=key, value=self._parse_type())

        if tt == GoTokenType.STRUCT:
            return self._parse_struct_type()

        if tt == GoTokenType.INTERFACE:
            self._advance()
            self._skip_balanced()
            return GoOpaqueExpr(kind="interface")

        if tt == GoTokenType.FUNC:
            self._advance()
            self._skip_func_signature()
            return GoOpaqueExpr(kind="func")

        if tt == GoTokenType.CHAN or (tt == GoTokenType.OP and tok.value == "<-"):
            self._advance()
            while self._peek().type == GoTokenType.CHAN or self._peek().value == "<-":
                self._advance()
            self._parse_type()
            return GoOpaqueExpr(kind="chan")

        raise GoParseError(f"Expected type, got {tt.name} ({tok.value!r})", tok)

    def _parse_type_name(self) -> GoTypeExpr:
        name = self._expect(GoTokenType.IDENT).value
        expr: GoTypeExpr = GoIdentExpr(name=name)
        if self._peek().type == GoTokenType.DOT:
            self._advance()
            expr = GoSelectorExpr(package=name, name=self._expect(GoTokenType.IDENT).value)

        if self._peek().type == GoTokenType.LBRACKET and self._peek_at(1).type != GoTokenType.RBRACKET:
            self._advance()
            args = [self._parse_type()]
            while self._consume_if(GoTokenType.COMMA) is not None:
                if self._peek().type == GoTokenType.RBRACKET:
                    break
                args.append(self._parse_type())
            self._expect(GoTokenType.RBRACKET)
            expr = GoIndexExpr(base=expr, args=args)
        return expr

    def _parse_struct_type(self) -> GoStructExpr:
        self._expect(GoTokenType.STRUCT)
        self._expect(GoTokenType.LBRACE)
        fields: List[GoFieldDecl] = []

        self._skip_semicolons()
        while self._peek().type != GoTokenType.RBRACE:
            fields.append(self._parse_field_decl())
            if self._peek().type != GoTokenType.RBRACE:
                self._expect(GoTokenType.SEMICOLON)
            self._skip_semicolons()
        self._expect(GoTokenType.RBRACE)
        return GoStructExpr(fields=fields)

    def _parse_field_decl(self) -> GoFieldDecl:
        """Parse `A, B T "tag"` or an embedded `[*]pkg.T "tag"`."""
        if self._peek().type == GoTokenType.STAR:
            embedded = self._parse_type()
            return GoFieldDecl(names=[], type_expr=embedded, tag=self._parse_tag())

        first = self._expect(GoTokenType.IDENT)
        nt = self._peek().type

        if nt in (GoTokenType.SEMICOLON, GoTokenType.RBRACE, GoTokenType.STRING, GoTokenType.DOT):
            self._pos -= 1
            embedded = self._parse_type_name()
            return GoFieldDecl(names=[], type_expr=embedded, tag=self._parse_tag())

        if nt == GoTokenType.LBRACKET and self._looks_like_embedded_generic():
            self._pos -= 1
            embedded = self._parse_type_name()
            return GoFieldDecl(names=[], type_expr=embedded, tag=self._parse_tag())

        names = [first.value]
        while self._consume_if(GoTokenType.COMMA) is not None:
            names.append(self._expect(GoTokenType.IDENT).value)

        type_expr = self._parse_type()
        return GoFieldDecl(names=names, type_expr=type_expr, tag=self._parse_tag())

    def _looks_like_embedded_generic(self) -> bool:
        """`Base[T]` followed by end of field is an embedded instantiation."""
        saved = self._pos
        try:
            self._advance()  # [
            depth = 1
            while depth > 0 and not self._at_end():
                tok = self._advance()
                if tok.type == GoTokenType.LBRACKET:
                    depth += 1
                elif tok.type == GoTokenType.RBRACKET:
                    depth -= 1
            return self._peek().type in (GoTokenType.SEMICOLON, GoTokenType.RBRACE, GoTokenType.STRING)
        finally:
            self._pos = saved

    def _parse_tag(self) -> Optional[str]:
        tok = self._consume_if(GoTokenType.STRING)
        return tok.value if tok is not None else None

    # -- skip / recovery helpers --

    def _skip_func_signature(self) -> None:
        """Skip `(params) result` of a func type."""
        self._skip_balanced()
        if self._peek().type == GoTokenType.LPAREN:
            self._skip_balanced()
        elif self._peek().type not in (
            GoTokenType.SEMICOLON,
            GoTokenType.RBRACE,
            GoTokenType.RPAREN,
            GoTokenType.RBRACKET,
            GoTokenType.COMMA,
            GoTokenType.STRING,
            GoTokenType.EOF,
        ):
            self._parse_type()

    def _skip_balanced(self) -> None:
        """Skip one bracketed group starting at the current opener."""
        if self._peek().type not in _OPENERS:
            return
        depth = 0
        while not self._at_end():
            tok = self._advance()
            if tok.type in _OPENERS:
                depth += 1
            elif tok.type in _CLOSERS:
                depth -= 1
                if depth == 0:
                    return
        raise GoParseError("Unbalanced brackets at end of file", self._peek())

    def _skip_declaration(self) -> None:
        """Skip a func/var/const declaration up to its terminating semicolon."""
        depth = 0
        while not self._at_end():
            tok = self._advance()
            if tok.type in _OPENERS:
                depth += 1
            elif tok.type in _CLOSERS:
                depth -= 1
                if depth < 0:
                    raise GoParseError(f"Unexpected {tok.value!r}", tok)
            elif tok.type == GoTokenType.SEMICOLON and depth == 0:
                return
        if depth != 0:
            raise GoParseError("Unbalanced brackets at end of file", self._peek())

    def _collect_until(self, stop: GoTokenType) -> str:
        parts: List[str] = []
        while not self._at_end() and self._peek().type != stop:
            parts.append(self._advance().value)
        return "".join(parts)

    def _skip_semicolons(self) -> None:
        while self._peek().type == GoTokenType.SEMICOLON:
            self._advance()

    def _expect_end_of_decl(self) -> None:
        if self._peek().type in (GoTokenType.RPAREN, GoTokenType.EOF):
            return
        self._expect(GoTokenType.SEMICOLON)

    # -- token helpers --

    def _peek(self) -> GoToken:
        return self._tokens[self._pos]

    def _peek_at(self, offset: int) -> GoToken:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _advance(self) -> GoToken:
        tok = self._tokens[self._pos]
        if tok.type != GoTokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, expected: GoTokenType) -> GoToken:
        tok = self._peek()
        if tok.type != expected:
            raise GoParseError(
                f"Expected {expected.name}, got {tok.type.name} ({tok.value!r})",
                tok,
            )
        return self._advance()

    def _consume_if(self, expected: GoTokenType) -> GoToken | None:
        if self._peek().type == expected:
            return self._advance()
        return None

    def _at_end(self) -> bool:
        return self._tokens[self._pos].type == GoTokenType.EOF
