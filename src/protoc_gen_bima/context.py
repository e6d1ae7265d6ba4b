from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Set, Tuple

from protoc_gen_bima.config import PluginOptions
from protoc_gen_bima.diagnostics import Diagnostics
from protoc_gen_bima.manifest import ProjectManifest, load_manifest
from protoc_gen_bima.resolver import ModelResolver


@dataclass
class GeneratorContext:
    """State shared by every emitter during a single generation run."""

    options: PluginOptions
    manifest: ProjectManifest
    diagnostics: Diagnostics
    resolver: ModelResolver
    compiler_version: Optional[Tuple[int, int, int]] = None
    emitted_aliases: Set[str] = field(default_factory=set)

    @classmethod
    def create(
        cls,
        options: Optional[PluginOptions] = None,
        compiler_version: Optional[Tuple[int, int, int]] = None,
        manifest: Optional[ProjectManifest] = None,
    ) -> GeneratorContext:
        options = options or PluginOptions()
        if manifest is None:
            manifest = load_manifest(options.root)
        diagnostics = Diagnostics()
        return cls(
            options=options,
            manifest=manifest,
            diagnostics=diagnostics,
            resolver=ModelResolver(manifest, diagnostics),
            compiler_version=compiler_version,
        )

    def mark_alias(self, model_name: str) -> bool:
        """Record a model alias; False if one was already emitted this run."""
        if model_name in self.emitted_aliases:
            return False
        self.emitted_aliases.add(model_name)
        return True
