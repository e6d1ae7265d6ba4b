"""Locating model structs in Go source and reading their field types."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Callable, Dict, List, Optional

from protoc_gen_bima.diagnostics import Diagnostics
from protoc_gen_bima.manifest import ProjectManifest
from protoc_gen_bima.models import ModelAnnotation, ModelFieldMap
from protoc_gen_bima.naming import to_snake
from protoc_gen_bima.parser.go_ast import GoFile
from protoc_gen_bima.parser.go_ast_parser import GoParseError
from protoc_gen_bima.parser.go_parser import parse_go_file
from protoc_gen_bima.parser.go_transform import find_model_fields

log = logging.getLogger(__name__)


def model_source_path(model: ModelAnnotation) -> str:
    """The file a model is expected in: <import path>/<snake_case name>.go."""
    file_name = to_snake(model.type_name) + ".go"
    if not model.import_path:
        return file_name
    return posixpath.join(model.import_path, file_name)


def candidate_paths(model: ModelAnnotation, manifest: Optional[ProjectManifest] = None) -> List[str]:
    """Ordered, finite list of relative paths to try for a model's source.

    The module-relative path comes first when the import path lies inside the
    project's module. Then the full path, then the path with its leading
    segments stripped one by one while at least two segments remain.
    """
    candidates: List[str] = []
    if manifest is not None:
        rel = manifest.relative_to_module(model.import_path)
        if rel is not None:
            candidates.append(posixpath.join(rel, to_snake(model.type_name) + ".go"))

    path = model_source_path(model)
    segments = path.split("/")
    while len(segments) > 1:
        candidates.append("/".join(segments))
        segments = segments[1:]

    if not candidates:
        candidates.append(path)

    seen = set()
    ordered: List[str] = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            ordered.append(c)
    return ordered


class ModelResolver:
    """Resolves model references to field maps, memoized by type name.

    A model that cannot be located is cached as None, so repeated lookups for
    it neither hit the filesystem nor report again.
    """

    def __init__(
        self,
        manifest: ProjectManifest,
        diagnostics: Diagnostics,
        parse_file: Callable[[str], GoFile] = parse_go_file,
    ):
        self._manifest = manifest
        self._diagnostics = diagnostics
        self._parse_file = parse_file
        self._cache: Dict[str, Optional[ModelFieldMap]] = {}

    def resolve(self, model: ModelAnnotation) -> Optional[ModelFieldMap]:
        if model.type_name in self._cache:
            return self._cache[model.type_name]

        fields = self._load(model)
        self._cache[model.type_name] = fields
        return fields

    def _load(self, model: ModelAnnotation) -> Optional[ModelFieldMap]:
        origin = model_source_path(model)
        ast = None
        source = ""
        for candidate in candidate_paths(model, self._manifest):
            full_path = str(Path(self._manifest.root) / candidate)
            try:
                ast = self._parse_file(full_path)
            except (OSError, UnicodeDecodeError) as e:
                log.debug("skipping %s: %s", full_path, e)
                continue
            except GoParseError as e:
                log.debug("cannot parse %s: %s", full_path, e)
                continue
            source = full_path
            break

        if ast is not None:
            fields = find_model_fields(ast, model.type_name)
            if fields is not None:
                log.debug("resolved model %s from %s (%d fields)", model.type_name, source, len(fields))
                return fields

        self._diagnostics.warning(
            model.type_name,
            f"couldn't find type {model.type_name} in {origin}",
        )
        return None
