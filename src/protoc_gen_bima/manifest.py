"""Reading the Go module manifest (go.mod) of the project being generated."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

MANIFEST_NAME = "go.mod"

_MODULE_RE = re.compile(r"^\s*module\s+(\"[^\"]*\"|`[^`]*`|\S+)")


def module_path(text: str) -> str:
    """Return the module path declared in go.mod text, or "" if none."""
    for raw_line in text.splitlines():
        line = raw_line.split("//", 1)[0]
        m = _MODULE_RE.match(line)
        if m:
            return m.group(1).strip("\"`")
    return ""


@dataclass
class ProjectManifest:
    root: Path
    module_path: str = ""

    def relative_to_module(self, import_path: str) -> Optional[str]:
        """Strip the module path from an import path inside this module."""
        if not self.module_path:
            return None
        if import_path == self.module_path:
            return ""
        prefix = self.module_path + "/"
        if import_path.startswith(prefix):
            return import_path[len(prefix):]
        return None


def load_manifest(root: str | Path) -> ProjectManifest:
    """Read go.mod from `root`.

    A missing or unreadable manifest is not fatal: a warning is logged and
    the returned manifest has an empty module path.
    """
    root = Path(root)
    path = root / MANIFEST_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        log.warning("Warning: %s not found", MANIFEST_NAME)
        return ProjectManifest(root=root)

    mod = module_path(text)
    if not mod:
        log.warning("Warning: no module directive in %s", path)
    return ProjectManifest(root=root, module_path=mod)
