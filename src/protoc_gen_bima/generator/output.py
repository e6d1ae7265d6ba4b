"""Per-file output: header, package clause, imports and generated blocks."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from jinja2 import Environment, FileSystemLoader

from protoc_gen_bima.config import PluginOptions
from protoc_gen_bima.models import GoIdent, SchemaFile
from protoc_gen_bima.naming import clean_package_name
from protoc_gen_bima.version import version_string

GENERATED_SUFFIX = ".pb.bima.go"
GENERATOR_NAME = "protoc-gen-bima"

# Emit the "versions:" and "source:" lines in the file header.
GENERATE_VERSION_MARKERS = True

# Predeclared Go identifiers an import name must not shadow.
_UNIVERSE = {
    "any", "append", "bool", "byte", "cap", "clear", "close", "comparable",
    "complex", "complex128", "complex64", "copy", "delete", "error", "false",
    "float32", "float64", "imag", "int", "int16", "int32", "int64", "int8",
    "iota", "len", "make", "max", "min", "new", "nil", "panic", "print",
    "println", "real", "recover", "rune", "string", "true", "uint", "uint16",
    "uint32", "uint64", "uint8", "uintptr",
}


def get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def format_compiler_version(version: Optional[Tuple[int, int, int]]) -> str:
    if version is None:
        return "(unknown)"
    major, minor, patch = version
    return f"v{major}.{minor}.{patch}"


class GeneratedFile:
    """A Go source file being assembled for one proto file.

    Identifiers from other Go packages go through `qualified`, which
    registers the import and returns the package-qualified name.
    """

    def __init__(self, schema: SchemaFile, options: Optional[PluginOptions] = None):
        self.schema = schema
        self.filename = schema.generated_filename_prefix + GENERATED_SUFFIX
        self._options = options or PluginOptions()
        self._package_names: Dict[str, str] = {}
        self._used_names: Set[str] = set(_UNIVERSE)
        self._blank_imports: Set[str] = set()
        self._used_paths: Set[str] = set()
        self._local_names: Set[str] = set()
        self._blocks: List[str] = []
        self.has_weak_timestamp = False

    # -- imports --

    def qualified(self, ident: GoIdent, use: bool = True) -> str:
        """Render an identifier as seen from this file's package.

        With use=False the import gets its name but stays blank unless some
        later call uses it.
        """
        if not ident.import_path or ident.import_path == self.schema.go_import_path:
            return ident.go_name
        if use:
            self._used_paths.add(ident.import_path)
        return f"{self._package_name(ident.import_path)}.{ident.go_name}"

    def import_path(self, path: str) -> None:
        """Make sure `path` is imported, blank unless something uses it."""
        if path and path != self.schema.go_import_path:
            self._blank_imports.add(path)

    def _package_name(self, import_path: str) -> str:
        name = self._package_names.get(import_path)
        if name is not None:
            return name
        orig = clean_package_name(import_path)
        name = orig
        i = 1
        while name in self._used_names or name in self._local_names:
            name = f"{orig}{i}"
            i += 1
        self._package_names[import_path] = name
        self._used_names.add(name)
        return name

    def local_name(self, name: str) -> str:
        """A function-local variable name that shadows no import or predeclared name.

        Imports registered afterwards are named around it.
        """
        while name in self._used_names:
            name += "_"
        self._local_names.add(name)
        return name

    def imports(self) -> List[Tuple[str, str]]:
        """(name, path) pairs sorted by path; name is "_" for blank imports."""
        entries = [
            (name if path in self._used_paths else "_", path)
            for path, name in self._package_names.items()
        ]
        entries.extend(
            ("_", path) for path in self._blank_imports if path not in self._package_names
        )
        rendered = [(name, self._options.rewrite_import(path)) for name, path in entries]
        return sorted(rendered, key=lambda e: e[1])

    # -- body --

    def add_block(self, text: str) -> None:
        text = text.strip("\n")
        if text:
            self._blocks.append(text + "\n")

    @property
    def blocks(self) -> List[str]:
        return list(self._blocks)

    def content(self, compiler_version: Optional[Tuple[int, int, int]] = None) -> str:
        template = get_template_env().get_template("file.go.j2")
        return template.render(
            generator=GENERATOR_NAME,
            version_markers=GENERATE_VERSION_MARKERS,
            generator_version=version_string(),
            protoc_version=format_compiler_version(compiler_version),
            source=self.schema.proto_path,
            package=self.schema.go_package_name,
            imports=self.imports(),
            body="\n".join(self._blocks),
        )
