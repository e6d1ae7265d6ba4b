"""Identifier helpers shared by the plugin and the emitters.

These follow the conventions of protoc-gen-go so generated code refers to the
same names the Go protobuf generator produces.
"""

from __future__ import annotations

import posixpath

GO_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
}


def go_camel_case(name: str) -> str:
    """Convert a proto identifier to its Go name.

    foo_bar -> FooBar, foo.bar -> FooBar, _foo -> XFoo, foo_1 -> Foo_1
    """
    out = []
    i = 0
    n = len(name)
    while i < n:
        c = name[i]
        nxt = name[i + 1] if i + 1 < n else ""
        if c == "." and nxt.islower() and nxt.isascii():
            pass
        elif c == ".":
            out.append("_")
        elif c == "_" and (i == 0 or name[i - 1] == "."):
            out.append("X")
        elif c == "_" and nxt.islower() and nxt.isascii():
            pass
        elif c.isdigit():
            out.append(c)
        else:
            out.append(c.upper() if c.islower() and c.isascii() else c)
            while i + 1 < n and name[i + 1].islower() and name[i + 1].isascii():
                i += 1
                out.append(name[i])
        i += 1
    return "".join(out)


def to_snake(name: str) -> str:
    """Convert a Go type name to the snake_case file stem.

    Acronyms stay whole words: TodoItem -> todo_item, UserID -> user_id,
    JSONData -> json_data.
    """
    s = name.strip()
    out = []
    for i, ch in enumerate(s):
        is_cap = "A" <= ch <= "Z"
        is_low = "a" <= ch <= "z"
        is_num = "0" <= ch <= "9"
        v = ch.lower() if is_cap else ch
        if i + 1 < len(s):
            nxt = s[i + 1]
            next_cap = "A" <= nxt <= "Z"
            next_low = "a" <= nxt <= "z"
            next_num = "0" <= nxt <= "9"
            if (
                (is_cap and (next_low or next_num))
                or (is_low and (next_cap or next_num))
                or (is_num and (next_cap or next_low))
            ):
                if is_cap and next_low and i > 0 and "A" <= s[i - 1] <= "Z":
                    out.append("_")
                out.append(v)
                if is_low or is_num or next_num:
                    out.append("_")
                continue
        if v in (" ", "_", "-", "."):
            out.append("_")
        else:
            out.append(v)
    return "".join(out)


def lower_first(name: str) -> str:
    if not name:
        return name
    return name[0].lower() + name[1:]


def go_sanitized(name: str) -> str:
    """Turn an arbitrary string into a valid Go identifier."""
    s = "".join(c if c.isalnum() else "_" for c in name)
    if not s or s in GO_KEYWORDS or not s[0].isalpha():
        return "_" + s
    return s


def clean_package_name(import_path: str) -> str:
    """Default Go package name for an import path: its sanitized base."""
    return go_sanitized(posixpath.basename(import_path.rstrip("/")))
