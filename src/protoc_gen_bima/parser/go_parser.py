from __future__ import annotations

from pathlib import Path

from .go_ast import GoFile
from .go_ast_parser import GoParseError, GoParser
from .go_tokenizer import GoTokenizeError, tokenize_go


def parse_go_source(text: str) -> GoFile:
    """Parse Go source text into a GoFile AST.

    Raises GoParseError for input that is not a well-formed Go file.
    """
    try:
        tokens = tokenize_go(text)
    except GoTokenizeError as e:
        raise GoParseError(str(e)) from e
    return GoParser(tokens).parse()


def parse_go_file(file_path: str) -> GoFile:
    """Read and parse a Go source file.

    Raises OSError if the file cannot be read and GoParseError if it cannot be
    parsed.
    """
    text = Path(file_path).read_text(encoding="utf-8")
    return parse_go_source(text)
