"""Choosing how one message field is copied to and from its model field.

`plan_conversion` looks at the field's wire type and the model's declared Go
type and returns a ConversionPlan carrying the Go statements for both
directions:

- to_model   (Bind):   `to` is the model, `from` is the message
- to_message (Bundle): `to` is the message, `from` is the model

Combinations the generator refuses outright raise ConversionError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from protoc_gen_bima.generator.output import GeneratedFile
from protoc_gen_bima.models import Field, GoIdent, Kind, ModelAnnotation
from protoc_gen_bima.naming import GO_KEYWORDS, lower_first

BASIC_TYPES = {
    "bool",
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "float32", "float64",
    "string",
    "[]byte",
}

NUMERIC_TYPES = BASIC_TYPES - {"bool", "string", "[]byte"}

INTEGER_TYPES = NUMERIC_TYPES - {"float32", "float64"}

# google.protobuf wrapper message -> Go type of its Value field
WELL_KNOWN_TYPES: Dict[str, str] = {
    "DoubleValue": "float64",
    "FloatValue": "float32",
    "Int64Value": "int64",
    "UInt64Value": "uint64",
    "Int32Value": "int32",
    "UInt32Value": "uint32",
    "BoolValue": "bool",
    "StringValue": "string",
    "BytesValue": "[]byte",
}

# database/sql null type -> name of its value field
SQL_TYPES: Dict[str, str] = {
    "sql.NullString": "String",
    "sql.NullInt64": "Int64",
    "sql.NullInt32": "Int32",
    "sql.NullFloat64": "Float64",
    "sql.NullBool": "Bool",
    "sql.NullTime": "Time",
}

# value field -> its Go type
SQL_VALUE_TYPES: Dict[str, str] = {
    "String": "string",
    "Int64": "int64",
    "Int32": "int32",
    "Float64": "float64",
    "Bool": "bool",
    "Time": "time.Time",
}

SQL_IMPORT = "database/sql"
TIME_IMPORT = "time"
PTYPES_IMPORT = "github.com/golang/protobuf/ptypes"
WELL_KNOWN_PACKAGE = "google.protobuf."
TIMESTAMP_MESSAGE = "google.protobuf.Timestamp"
IDENTIFIER_FIELD = "Id"

# Names already bound inside Bind/Bundle.
_RESERVED_LOCALS = {"x", "v", "to", "from"}

_SCALAR_GO_TYPES: Dict[Kind, str] = {
    Kind.BOOL: "bool",
    Kind.INT32: "int32",
    Kind.SINT32: "int32",
    Kind.SFIXED32: "int32",
    Kind.UINT32: "uint32",
    Kind.FIXED32: "uint32",
    Kind.INT64: "int64",
    Kind.SINT64: "int64",
    Kind.SFIXED64: "int64",
    Kind.UINT64: "uint64",
    Kind.FIXED64: "uint64",
    Kind.FLOAT: "float32",
    Kind.DOUBLE: "float64",
    Kind.STRING: "string",
    Kind.BYTES: "[]byte",
}


class ConversionError(Exception):
    """Raised when a field/model type pairing is not supported."""


class Strategy(Enum):
    DIRECT = "direct"
    PRESENCE_UNWRAP = "presence-unwrap"
    CONVERT = "convert"
    ENUM = "enum"
    WELL_KNOWN_WRAPPER = "well-known-wrapper"
    SQL_NULL_WRAPPER = "sql-null-wrapper"
    TIMESTAMP = "timestamp"
    UNSUPPORTED = "unsupported"


@dataclass
class ConversionPlan:
    field_name: str
    strategy: Strategy
    wire_type: str = ""
    to_model: List[str] = field(default_factory=list)
    to_message: List[str] = field(default_factory=list)
    advisory: Optional[str] = None


def parse_type(type_str: str) -> Tuple[str, bool]:
    """Split a declared type into (core type, is pointer)."""
    if type_str.startswith("*"):
        return type_str[1:], True
    return type_str, False


def wire_go_type(f: Field, out: GeneratedFile) -> Tuple[str, bool]:
    """Go type protoc-gen-go gives the field, and whether it is a pointer.

    Imports the type needs are named but not marked used; callers that emit
    the type qualify it again.
    """
    if f.is_weak:
        return "struct{}", False

    pointer = f.has_presence
    if f.kind == Kind.ENUM:
        go_type = out.qualified(f.enum.go_ident, use=False)
    elif f.kind in (Kind.MESSAGE, Kind.GROUP):
        go_type = "*" + out.qualified(f.message.go_ident, use=False)
        pointer = False
    else:
        go_type = _SCALAR_GO_TYPES[f.kind]
        if f.kind == Kind.BYTES:
            pointer = False

    if f.is_list:
        return "[]" + go_type, False
    if f.is_map:
        key_type, _ = wire_go_type(f.message.fields[0], out)
        value_type, _ = wire_go_type(f.message.fields[1], out)
        return f"map[{key_type}]{value_type}", False
    return go_type, pointer


def plan_conversion(
    f: Field,
    declared_type: Optional[str],
    out: GeneratedFile,
    model: ModelAnnotation,
) -> ConversionPlan:
    """Plan the conversion of message field `f` against its model field.

    `declared_type` is the model's declared type for the field, or None when
    the model has no field of that name.
    """
    name = f.go_name

    if f.is_list or f.is_map or f.is_weak or f.in_oneof:
        return ConversionPlan(name, Strategy.UNSUPPORTED)

    wire_type, wire_pointer = wire_go_type(f, out)

    if declared_type is None:
        if name == IDENTIFIER_FIELD and f.kind not in (Kind.MESSAGE, Kind.GROUP):
            stmt = f"to.{name} = from.{name}"
            return ConversionPlan(
                name, Strategy.DIRECT, wire_type,
                to_model=[stmt], to_message=[stmt],
            )
        return ConversionPlan(name, Strategy.UNSUPPORTED, wire_type)

    if f.kind in (Kind.MESSAGE, Kind.GROUP):
        return _plan_message(f, wire_type, declared_type, out, model)
    return _plan_scalar(f, wire_type, wire_pointer, declared_type, out, model)


# -- message fields --

def _plan_message(
    f: Field,
    wire_type: str,
    declared_type: str,
    out: GeneratedFile,
    model: ModelAnnotation,
) -> ConversionPlan:
    full_name = f.message.full_name
    short_name = full_name[len(WELL_KNOWN_PACKAGE):] if full_name.startswith(WELL_KNOWN_PACKAGE) else ""

    if short_name in WELL_KNOWN_TYPES:
        return _plan_wrapper(f, wire_type, declared_type, WELL_KNOWN_TYPES[short_name], out, model)
    if full_name == TIMESTAMP_MESSAGE:
        return _plan_timestamp(f, wire_type, declared_type, out)
    return ConversionPlan(f.go_name, Strategy.UNSUPPORTED, wire_type)


def _plan_wrapper(
    f: Field,
    wire_type: str,
    declared_type: str,
    primitive: str,
    out: GeneratedFile,
    model: ModelAnnotation,
) -> ConversionPlan:
    name = f.go_name
    core, pointer = parse_type(declared_type)

    if core in SQL_TYPES:
        if pointer:
            raise ConversionError(f"type {declared_type} is not supported")
        value_field = SQL_TYPES[core]
        value_type = SQL_VALUE_TYPES[value_field]
        if value_type != primitive and not _castable(value_type, primitive):
            raise ConversionError(f"type {declared_type} is not supported")
        null_type = out.qualified(GoIdent(core.split(".", 1)[1], SQL_IMPORT))
        wrapper = out.qualified(f.message.go_ident)
        to_wire = _cast_expr(primitive, f"from.{name}.{value_field}", value_type)
        to_sql = _cast_expr(value_type, f"from.{name}.Value", primitive)
        return ConversionPlan(
            name,
            Strategy.SQL_NULL_WRAPPER,
            wire_type,
            to_model=_guarded(
                f"from.{name} != nil",
                [f"to.{name} = {null_type}{{{value_field}: {to_sql}, Valid: true}}"],
            ),
            to_message=_guarded(
                f"from.{name}.Valid",
                [f"to.{name} = &{wrapper}{{Value: {to_wire}}}"],
            ),
        )

    if not pointer:
        return ConversionPlan(
            name,
            Strategy.UNSUPPORTED,
            wire_type,
            advisory=(
                "Please change protobuf type message's field regarding type of "
                f"{name} on model {model.type_name}"
            ),
        )

    if core != primitive and not _castable(core, primitive):
        return ConversionPlan(name, Strategy.UNSUPPORTED, wire_type)

    if core == primitive:
        to_model = [f"to.{name} = &from.{name}.Value"]
    else:
        tmp = _local_name(name, out)
        to_model = [
            f"{tmp} := {core}(from.{name}.Value)",
            f"to.{name} = &{tmp}",
        ]
    wrapper = out.qualified(f.message.go_ident)
    return ConversionPlan(
        name,
        Strategy.WELL_KNOWN_WRAPPER,
        wire_type,
        to_model=_guarded(f"from.{name} != nil", to_model),
        to_message=_guarded(
            f"from.{name} != nil",
            [f"to.{name} = &{wrapper}{{Value: {_cast_expr(primitive, f'*from.{name}', core)}}}"],
        ),
    )


def _plan_timestamp(
    f: Field,
    wire_type: str,
    declared_type: str,
    out: GeneratedFile,
) -> ConversionPlan:
    name = f.go_name
    core, pointer = parse_type(declared_type)

    if core not in ("sql.NullTime", "time.Time"):
        raise ConversionError(f"type {declared_type} is not to be used for Timestamp")
    if core == "sql.NullTime" and pointer:
        raise ConversionError(f"type {declared_type} is not supported")

    timestamp_proto = out.qualified(GoIdent("TimestampProto", PTYPES_IMPORT))

    if core == "sql.NullTime":
        null_time = out.qualified(GoIdent("NullTime", SQL_IMPORT))
        to_message = _guarded(
            f"from.{name}.Valid",
            [f"to.{name}, _ = {timestamp_proto}(from.{name}.Time)"],
        )
        assign = [f"to.{name} = {null_time}{{Time: from.{name}.AsTime(), Valid: true}}"]
    elif pointer:
        to_message = _guarded(
            f"from.{name} != nil",
            [f"to.{name}, _ = {timestamp_proto}(*from.{name})"],
        )
        assign = [f"t := from.{name}.AsTime()", f"to.{name} = &t"]
    else:
        to_message = [f"to.{name}, _ = {timestamp_proto}(from.{name})"]
        assign = [f"to.{name} = from.{name}.AsTime()"]

    to_model = _guarded(
        f"from.{name} != nil",
        _guarded(f"from.{name}.IsValid()", assign),
    )
    return ConversionPlan(
        name,
        Strategy.TIMESTAMP,
        wire_type,
        to_model=to_model,
        to_message=to_message,
    )


# -- scalar and enum fields --

def _plan_scalar(
    f: Field,
    wire_type: str,
    wire_pointer: bool,
    declared_type: str,
    out: GeneratedFile,
    model: ModelAnnotation,
) -> ConversionPlan:
    name = f.go_name
    core, pointer = parse_type(declared_type)

    # A bare named type in the model source belongs to the model's package.
    named_model = None
    if f.kind == Kind.ENUM and "." not in core and core not in BASIC_TYPES:
        named_model = GoIdent(core, model.import_path)
        core = out.qualified(named_model, use=False)

    if core == wire_type:
        strategy = Strategy.DIRECT if pointer == wire_pointer else Strategy.PRESENCE_UNWRAP
        return ConversionPlan(
            name,
            strategy,
            wire_type,
            to_model=_assign(name, dst_pointer=pointer, src_pointer=wire_pointer),
            to_message=_assign(name, dst_pointer=wire_pointer, src_pointer=pointer),
        )

    if core in SQL_TYPES:
        suggested = SQL_VALUE_TYPES[SQL_TYPES[core]]
        return ConversionPlan(
            name,
            Strategy.UNSUPPORTED,
            wire_type,
            advisory=(
                f"Please change field {name} on model {model.type_name} to "
                f"{lower_first(suggested)} type, it wouldn't benefit anything"
            ),
        )

    if f.kind == Kind.ENUM:
        if core in INTEGER_TYPES:
            model_type = core
        elif named_model is not None:
            model_type = out.qualified(named_model)
        else:
            return ConversionPlan(name, Strategy.UNSUPPORTED, wire_type)
        strategy = Strategy.ENUM
        out.qualified(f.enum.go_ident)
    elif _castable(core, wire_type):
        model_type = core
        strategy = Strategy.CONVERT
    else:
        return ConversionPlan(name, Strategy.UNSUPPORTED, wire_type)

    return ConversionPlan(
        name,
        strategy,
        wire_type,
        to_model=_convert(name, model_type, out, dst_pointer=pointer, src_pointer=wire_pointer),
        to_message=_convert(name, wire_type, out, dst_pointer=wire_pointer, src_pointer=pointer),
    )


# -- statement helpers --

def _castable(a: str, b: str) -> bool:
    return a in NUMERIC_TYPES and b in NUMERIC_TYPES


def _cast_expr(dst_type: str, expr: str, src_type: str) -> str:
    if dst_type == src_type:
        return expr
    return f"{dst_type}({expr})"


def _local_name(field_name: str, out: GeneratedFile) -> str:
    name = lower_first(field_name)
    if name in _RESERVED_LOCALS or name in GO_KEYWORDS:
        name += "_"
    return out.local_name(name)


def _guarded(condition: str, body: List[str]) -> List[str]:
    return [f"if {condition} {{"] + ["\t" + line for line in body] + ["}"]


def _assign(name: str, dst_pointer: bool, src_pointer: bool) -> List[str]:
    if dst_pointer == src_pointer:
        return [f"to.{name} = from.{name}"]
    if dst_pointer:
        return [f"to.{name} = &from.{name}"]
    return _guarded(f"from.{name} != nil", [f"to.{name} = *from.{name}"])


def _convert(name: str, dst_type: str, out: GeneratedFile, dst_pointer: bool, src_pointer: bool) -> List[str]:
    src = f"*from.{name}" if src_pointer else f"from.{name}"
    expr = f"{dst_type}({src})"
    if dst_pointer:
        tmp = _local_name(name, out)
        body = [f"{tmp} := {expr}", f"to.{name} = &{tmp}"]
    else:
        body = [f"to.{name} = {expr}"]
    if src_pointer:
        return _guarded(f"from.{name} != nil", body)
    return body
