"""Tokenizer for Go source files.

Only the subset of Go needed to read type declarations is recognized;
anything else becomes an OP token the parser can skip over.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class GoTokenType(Enum):
    # Keywords
    PACKAGE = auto()
    IMPORT = auto()
    TYPE = auto()
    STRUCT = auto()
    INTERFACE = auto()
    MAP = auto()
    CHAN = auto()
    FUNC = auto()
    KEYWORD = auto()

    # Delimiters
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    STAR = auto()
    DOT = auto()
    COMMA = auto()
    SEMICOLON = auto()
    ASSIGN = auto()
    OP = auto()

    # Literals
    IDENT = auto()
    NUMBER = auto()
    STRING = auto()
    CHAR = auto()

    # Special
    EOF = auto()


_KEYWORDS = {
    "package": GoTokenType.PACKAGE,
    "import": GoTokenType.IMPORT,
    "type": GoTokenType.TYPE,
    "struct": GoTokenType.STRUCT,
    "interface": GoTokenType.INTERFACE,
    "map": GoTokenType.MAP,
    "chan": GoTokenType.CHAN,
    "func": GoTokenType.FUNC,
}

_OTHER_KEYWORDS = {
    "break", "case", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "go", "goto", "if", "range", "return", "select",
    "switch", "var",
}

_SINGLE_CHAR = {
    "{": GoTokenType.LBRACE,
    "}": GoTokenType.RBRACE,
    "(": GoTokenType.LPAREN,
    ")": GoTokenType.RPAREN,
    "[": GoTokenType.LBRACKET,
    "]": GoTokenType.RBRACKET,
    "*": GoTokenType.STAR,
    ",": GoTokenType.COMMA,
    ";": GoTokenType.SEMICOLON,
}

# A newline after one of these ends the statement (Go's semicolon rule).
_ENDS_STATEMENT = {
    GoTokenType.IDENT,
    GoTokenType.NUMBER,
    GoTokenType.STRING,
    GoTokenType.CHAR,
    GoTokenType.RPAREN,
    GoTokenType.RBRACKET,
    GoTokenType.RBRACE,
}
_ENDS_STATEMENT_WORDS = {"break", "continue", "fallthrough", "return", "++", "--"}

_OPERATORS = [
    "<<=", ">>=", "&^=", "...", "&&", "||", "<-", "++", "--", "==", "!=",
    "<=", ">=", ":=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<",
    ">>", "&^",
]


class GoTokenizeError(Exception):
    pass


@dataclass
class GoToken:
    type: GoTokenType
    value: str
    line: int
    col: int


def _needs_semicolon(tokens: List[GoToken]) -> bool:
    if not tokens:
        return False
    last = tokens[-1]
    return last.type in _ENDS_STATEMENT or last.value in _ENDS_STATEMENT_WORDS


def tokenize_go(text: str) -> List[GoToken]:
    """Tokenize Go source text, inserting semicolons at line ends."""
    tokens: List[GoToken] = []
    i = 0
    line = 1
    col = 1
    n = len(text)

    def newline() -> None:
        if _needs_semicolon(tokens):
            tokens.append(GoToken(GoTokenType.SEMICOLON, "\n", line, col))

    while i < n:
        ch = text[i]

        if ch in (" ", "\t", "\r"):
            i += 1
            col += 1
            continue

        if ch == "\n":
            newline()
            i += 1
            line += 1
            col = 1
            continue

        # Line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue

        # General comment; one spanning lines acts like a newline
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            if end < 0:
                raise GoTokenizeError(f"Line {line}:{col}: comment not terminated")
            body = text[i:end + 2]
            if "\n" in body:
                newline()
                line += body.count("\n")
                col = len(body) - body.rfind("\n")
            else:
                col += len(body)
            i = end + 2
            continue

        # Raw string
        if ch == "`":
            end = text.find("`", i + 1)
            if end < 0:
                raise GoTokenizeError(f"Line {line}:{col}: raw string not terminated")
            value = text[i:end + 1]
            tokens.append(GoToken(GoTokenType.STRING, value, line, col))
            line += value.count("\n")
            col = col + len(value) if "\n" not in value else len(value) - value.rfind("\n")
            i = end + 1
            continue

        # Interpreted string / rune literal
        if ch in ('"', "'"):
            start = i
            start_col = col
            i += 1
            while i < n and text[i] != ch:
                if text[i] == "\n":
                    raise GoTokenizeError(f"Line {line}:{start_col}: literal not terminated")
                if text[i] == "\\":
                    i += 1
                i += 1
            if i >= n:
                raise GoTokenizeError(f"Line {line}:{start_col}: literal not terminated")
            i += 1
            col += i - start
            tok_type = GoTokenType.STRING if ch == '"' else GoTokenType.CHAR
            tokens.append(GoToken(tok_type, text[start:i], line, start_col))
            continue

        # Number (loose: digits, hex, floats, exponents, underscores)
        if ch.isdigit() or (ch == "." and i + 1 < n and text[i + 1].isdigit()):
            start = i
            start_col = col
            while i < n and (text[i].isalnum() or text[i] in "._"):
                i += 1
            col += i - start
            tokens.append(GoToken(GoTokenType.NUMBER, text[start:i], line, start_col))
            continue

        # Identifier / keyword
        if ch.isalpha() or ch == "_":
            start = i
            start_col = col
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            col += i - start
            word = text[start:i]
            if word in _KEYWORDS:
                tok_type = _KEYWORDS[word]
            elif word in _OTHER_KEYWORDS:
                tok_type = GoTokenType.KEYWORD
            else:
                tok_type = GoTokenType.IDENT
            tokens.append(GoToken(tok_type, word, line, start_col))
            continue

        if ch in _SINGLE_CHAR:
            tokens.append(GoToken(_SINGLE_CHAR[ch], ch, line, col))
            i += 1
            col += 1
            continue

        op = next((o for o in _OPERATORS if text.startswith(o, i)), None)
        if op is not None:
            tokens.append(GoToken(GoTokenType.OP, op, line, col))
            i += len(op)
            col += len(op)
            continue

        if ch == ".":
            tokens.append(GoToken(GoTokenType.DOT, ".", line, col))
        elif ch == "=":
            tokens.append(GoToken(GoTokenType.ASSIGN, "=", line, col))
        else:
            tokens.append(GoToken(GoTokenType.OP, ch, line, col))
        i += 1
        col += 1

    newline()
    tokens.append(GoToken(GoTokenType.EOF, "", line, col))
    return tokens
