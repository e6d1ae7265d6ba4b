from __future__ import annotations

import logging
from typing import Optional

from protoc_gen_bima.classifier import classify_messages
from protoc_gen_bima.context import GeneratorContext
from protoc_gen_bima.generator.binding_generator import generate_binding
from protoc_gen_bima.generator.output import GeneratedFile
from protoc_gen_bima.generator.response_generator import generate_responses
from protoc_gen_bima.models import SchemaFile

log = logging.getLogger(__name__)


def generate_file(schema: SchemaFile, ctx: GeneratorContext) -> Optional[GeneratedFile]:
    """Generate the .pb.bima.go file for one proto file.

    Returns None when the file has no message annotated with a model.
    """
    if not schema.annotated_messages:
        return None

    out = GeneratedFile(schema, ctx.options)
    for imp in schema.imports:
        if imp.is_weak or imp.go_import_path == schema.go_import_path:
            continue
        out.import_path(imp.go_import_path)

    kinds = classify_messages(schema.messages)
    for message in schema.messages:
        if message.model is not None:
            out.add_block(generate_binding(message, out, ctx))
        out.add_block(generate_responses(message, schema.messages, kinds, out))

    log.info("generated %s (%d blocks)", out.filename, len(out.blocks))
    return out
