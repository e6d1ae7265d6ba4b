from __future__ import annotations

import logging
from typing import Dict, List, Optional

from protoc_gen_bima.context import GeneratorContext
from protoc_gen_bima.generator.output import GeneratedFile, get_template_env
from protoc_gen_bima.models import GoIdent, Message
from protoc_gen_bima.rules import ConversionError, plan_conversion

log = logging.getLogger(__name__)

TIMESTAMP_PROTO = "google/protobuf/timestamp.proto"


def _weak_timestamp(out: GeneratedFile) -> Optional[str]:
    """`type _ timestamppb.Timestamp` keeps the timestamp import in use."""
    if not out.schema.has_timestamp or out.has_weak_timestamp:
        return None
    for imp in out.schema.imports:
        if imp.path == TIMESTAMP_PROTO:
            out.has_weak_timestamp = True
            return out.qualified(GoIdent("Timestamp", imp.go_import_path))
    return None


def _build_statements(
    message: Message,
    ctx: GeneratorContext,
    out: GeneratedFile,
) -> Optional[Dict[str, List[str]]]:
    """Plan every field of `message`; None when the model cannot be found."""
    model = message.model
    model_fields = ctx.resolver.resolve(model)
    if model_fields is None:
        return None

    to_model: List[str] = []
    to_message: List[str] = []
    for field in message.fields:
        location = f"{message.full_name}.{field.name}"
        try:
            plan = plan_conversion(field, model_fields.get(field.go_name), out, model)
        except ConversionError as e:
            ctx.diagnostics.error(location, f"{e} (model {model.type_name})")
            continue
        if plan.advisory:
            ctx.diagnostics.warning(location, plan.advisory)
        log.debug("%s: %s (%s)", location, plan.strategy.value, plan.wire_type)
        to_model.extend(plan.to_model)
        to_message.extend(plan.to_message)

    return {"to_model": to_model, "to_message": to_message}


def generate_binding(message: Message, out: GeneratedFile, ctx: GeneratorContext) -> str:
    """Generate the model alias and Bind/ToModel/Bundle for one message.

    The alias is declared once per model name across the run. The functions
    are left out when the model's struct cannot be located.
    """
    model = message.model
    model_type = out.qualified(model.go_ident)

    alias_name = None
    if ctx.mark_alias(model.type_name):
        alias_name = f"{model.type_name}Model"

    weak_timestamp = _weak_timestamp(out)
    statements = _build_statements(message, ctx, out)

    template = get_template_env().get_template("binding.go.j2")
    return template.render(
        message=message.go_name,
        model=model_type,
        alias_name=alias_name,
        weak_timestamp=weak_timestamp,
        functions=statements is not None,
        to_model=statements["to_model"] if statements else [],
        to_message=statements["to_message"] if statements else [],
    )

