"""Plugin parameters passed through protoc's --bima_opt / --bima_out string."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

PATHS_IMPORT = "import"
PATHS_SOURCE_RELATIVE = "source_relative"

# Import paths the generated code must never rewrite.
IMPORT_REWRITE_EXEMPT = {"context", "fmt", "math"}


class PluginError(Exception):
    """Raised for an unusable plugin invocation, such as a bad parameter."""


@dataclass
class PluginOptions:
    import_prefix: str = ""
    paths: str = PATHS_IMPORT
    root: str = "."
    # proto file path -> Go import path, from M<file>=<path> parameters
    import_mappings: Dict[str, str] = field(default_factory=dict)

    def rewrite_import(self, import_path: str) -> str:
        if import_path in IMPORT_REWRITE_EXEMPT:
            return import_path
        if self.import_prefix:
            return self.import_prefix + import_path
        return import_path


def parse_parameter(parameter: str) -> PluginOptions:
    """Parse the comma-separated `key=value` parameter string."""
    options = PluginOptions()
    if not parameter:
        return options

    for part in parameter.split(","):
        part = part.strip()
        if not part:
            continue
        key, _, value = part.partition("=")
        key = key.strip()
        value = value.strip()

        if key.startswith("M") and len(key) > 1:
            options.import_mappings[key[1:]] = value
        elif key == "import_prefix":
            options.import_prefix = value
        elif key == "paths":
            if value not in (PATHS_IMPORT, PATHS_SOURCE_RELATIVE):
                raise PluginError(f'invalid value for "paths": "{value}"')
            options.paths = value
        elif key == "root":
            options.root = value or "."
        else:
            raise PluginError(f'unknown parameter "{key}"')

    return options
