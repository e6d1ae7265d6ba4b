"""protoc plugin transport: CodeGeneratorRequest in, CodeGeneratorResponse out."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_gen_bima.config import PATHS_IMPORT, PluginError, PluginOptions, parse_parameter
from protoc_gen_bima.context import GeneratorContext
from protoc_gen_bima.diagnostics import Diagnostics
from protoc_gen_bima.generator.binding_generator import TIMESTAMP_PROTO
from protoc_gen_bima.generator.file_generator import generate_file
from protoc_gen_bima.models import (
    Cardinality,
    EnumType,
    Field,
    FileImport,
    GoIdent,
    Kind,
    Message,
    ModelAnnotation,
    SchemaFile,
)
from protoc_gen_bima.naming import clean_package_name, go_camel_case

log = logging.getLogger(__name__)

# Message option carrying the model reference: option (gorm.opts).model = "...";
MODEL_OPTION_EXTENSION = "gorm.opts"
MODEL_OPTION_FIELD = "model"

_FDP = descriptor_pb2.FieldDescriptorProto

_KINDS: Dict[int, Kind] = {
    _FDP.TYPE_DOUBLE: Kind.DOUBLE,
    _FDP.TYPE_FLOAT: Kind.FLOAT,
    _FDP.TYPE_INT64: Kind.INT64,
    _FDP.TYPE_UINT64: Kind.UINT64,
    _FDP.TYPE_INT32: Kind.INT32,
    _FDP.TYPE_FIXED64: Kind.FIXED64,
    _FDP.TYPE_FIXED32: Kind.FIXED32,
    _FDP.TYPE_BOOL: Kind.BOOL,
    _FDP.TYPE_STRING: Kind.STRING,
    _FDP.TYPE_GROUP: Kind.GROUP,
    _FDP.TYPE_MESSAGE: Kind.MESSAGE,
    _FDP.TYPE_BYTES: Kind.BYTES,
    _FDP.TYPE_UINT32: Kind.UINT32,
    _FDP.TYPE_ENUM: Kind.ENUM,
    _FDP.TYPE_SFIXED32: Kind.SFIXED32,
    _FDP.TYPE_SFIXED64: Kind.SFIXED64,
    _FDP.TYPE_SINT32: Kind.SINT32,
    _FDP.TYPE_SINT64: Kind.SINT64,
}


@dataclass
class GenerationResult:
    response: plugin_pb2.CodeGeneratorResponse
    diagnostics: Diagnostics


class ModelOptionReader:
    """Reads the model annotation extension from message options.

    The extension is looked up by name in a pool built from the request, so
    the options .proto only has to be among the request's files.
    """

    def __init__(self, request: plugin_pb2.CodeGeneratorRequest, diagnostics: Diagnostics):
        self._diagnostics = diagnostics
        pool = descriptor_pool.DescriptorPool()

        pending = list(request.proto_file)
        while pending:
            next_pending: List[descriptor_pb2.FileDescriptorProto] = []
            for f in pending:
                try:
                    pool.AddSerializedFile(f.SerializeToString())
                except Exception as e:  # dependency not added yet, or invalid
                    log.debug("deferring %s: %s", f.name, e)
                    next_pending.append(f)
            if len(next_pending) == len(pending):
                log.warning("could not load %s into descriptor pool", ", ".join(f.name for f in pending))
                break
            pending = next_pending

        try:
            self._extension = pool.FindExtensionByName(MODEL_OPTION_EXTENSION)
            options_desc = pool.FindMessageTypeByName("google.protobuf.MessageOptions")
        except KeyError:
            log.debug("extension %s not in request; no message is bound", MODEL_OPTION_EXTENSION)
            self._extension = None
            self._options_cls = None
        else:
            self._options_cls = message_factory.GetMessageClass(options_desc)

    def model_of(self, desc: descriptor_pb2.DescriptorProto, location: str) -> Optional[ModelAnnotation]:
        if self._extension is None or not desc.HasField("options"):
            return None

        opts = self._options_cls()
        try:
            opts.ParseFromString(desc.options.SerializeToString())
            if self._extension not in opts.Extensions:
                return None
            value = opts.Extensions[self._extension]
        except (DecodeError, KeyError) as e:
            self._diagnostics.warning(location, f"malformed {MODEL_OPTION_EXTENSION} option: {e}")
            return None

        model = value if isinstance(value, str) else getattr(value, MODEL_OPTION_FIELD, "")
        return ModelAnnotation.parse(model)


def _go_package(fd: descriptor_pb2.FileDescriptorProto, options: PluginOptions) -> Tuple[str, str]:
    """(Go import path, Go package name) for a proto file."""
    explicit_name = ""
    go_package = fd.options.go_package
    if ";" in go_package:
        import_path, explicit_name = go_package.split(";", 1)
    elif go_package:
        import_path = go_package
    else:
        import_path = posixpath.dirname(fd.name)

    mapped = options.import_mappings.get(fd.name)
    if mapped:
        import_path, _, mapped_name = mapped.partition(";")
        explicit_name = mapped_name or explicit_name
    if explicit_name:
        return import_path, explicit_name
    if import_path:
        return import_path, clean_package_name(import_path)
    return import_path, clean_package_name(fd.package.split(".")[-1] or fd.name[: -len(".proto")])


def _filename_prefix(fd: descriptor_pb2.FileDescriptorProto, import_path: str, options: PluginOptions) -> str:
    prefix = fd.name
    for ext in (".proto", ".protodevel"):
        if prefix.endswith(ext):
            prefix = prefix[: -len(ext)]
            break
    if options.paths == PATHS_IMPORT:
        return posixpath.join(import_path, posixpath.basename(prefix))
    return prefix


def _full_name(package: str, name: str) -> str:
    return f"{package}.{name}" if package else name


class _SchemaBuilder:
    """Converts request descriptors into the generator's SchemaFile models."""

    def __init__(self, request: plugin_pb2.CodeGeneratorRequest, options: PluginOptions, diagnostics: Diagnostics):
        self._request = request
        self._options = options
        self._option_reader = ModelOptionReader(request, diagnostics)
        self._messages: Dict[str, Message] = {}
        self._message_protos: Dict[str, Tuple[descriptor_pb2.DescriptorProto, str]] = {}
        self._enums: Dict[str, EnumType] = {}
        self._packages: Dict[str, Tuple[str, str]] = {}

    def build(self) -> List[SchemaFile]:
        for fd in self._request.proto_file:
            self._packages[fd.name] = _go_package(fd, self._options)
            import_path = self._packages[fd.name][0]
            for desc in fd.message_type:
                self._declare_message(desc, fd.package, "", import_path, fd.syntax)
            for enum in fd.enum_type:
                self._declare_enum(enum, fd.package, "", import_path)

        for full_name, (desc, syntax) in self._message_protos.items():
            message = self._messages[full_name]
            message.fields = [self._field(f, syntax) for f in desc.field]

        to_generate = set(self._request.file_to_generate)
        return [
            self._schema_file(fd, fd.name in to_generate)
            for fd in self._request.proto_file
        ]

    def _declare_message(self, desc, package: str, parent_go: str, import_path: str, syntax: str) -> None:
        full_name = _full_name(package, desc.name)
        go_name = f"{parent_go}_{go_camel_case(desc.name)}" if parent_go else go_camel_case(desc.name)
        self._messages[full_name] = Message(
            name=desc.name,
            full_name=full_name,
            go_ident=GoIdent(go_name, import_path),
        )
        self._message_protos[full_name] = (desc, syntax)
        for nested in desc.nested_type:
            self._declare_message(nested, full_name, go_name, import_path, syntax)
        for enum in desc.enum_type:
            self._declare_enum(enum, full_name, go_name, import_path)

    def _declare_enum(self, desc, package: str, parent_go: str, import_path: str) -> None:
        full_name = _full_name(package, desc.name)
        go_name = f"{parent_go}_{go_camel_case(desc.name)}" if parent_go else go_camel_case(desc.name)
        self._enums[full_name] = EnumType(full_name=full_name, go_ident=GoIdent(go_name, import_path))

    def _field(self, fp: descriptor_pb2.FieldDescriptorProto, syntax: str) -> Field:
        kind = _KINDS[fp.type]
        type_name = fp.type_name.lstrip(".")
        message = self._messages.get(type_name) if kind in (Kind.MESSAGE, Kind.GROUP) else None
        enum = self._enums.get(type_name) if kind == Kind.ENUM else None

        cardinality = Cardinality.SINGULAR
        if fp.label == _FDP.LABEL_REPEATED:
            entry = self._message_protos.get(type_name)
            if entry is not None and entry[0].options.map_entry:
                cardinality = Cardinality.MAP
            else:
                cardinality = Cardinality.LIST

        in_oneof = fp.HasField("oneof_index") and not fp.proto3_optional
        if cardinality != Cardinality.SINGULAR:
            has_presence = False
        elif syntax == "proto3":
            has_presence = kind in (Kind.MESSAGE, Kind.GROUP) or fp.proto3_optional or in_oneof
        else:
            has_presence = True

        return Field(
            name=fp.name,
            go_name=go_camel_case(fp.name),
            kind=kind,
            cardinality=cardinality,
            has_presence=has_presence,
            is_weak=fp.options.weak,
            in_oneof=in_oneof,
            message=message,
            enum=enum,
        )

    def _schema_file(self, fd: descriptor_pb2.FileDescriptorProto, generate: bool) -> SchemaFile:
        import_path, package_name = self._packages[fd.name]
        weak = set(fd.weak_dependency)

        imports: List[FileImport] = []
        for i, dep in enumerate(fd.dependency):
            if dep not in self._packages:
                continue
            imports.append(FileImport(
                path=dep,
                go_import_path=self._packages[dep][0],
                is_weak=i in weak,
            ))

        messages: List[Message] = []
        for desc in fd.message_type:
            message = self._messages[_full_name(fd.package, desc.name)]
            if generate:
                message.model = self._option_reader.model_of(desc, message.full_name)
            messages.append(message)

        return SchemaFile(
            proto_path=fd.name,
            go_package_name=package_name,
            go_import_path=import_path,
            generated_filename_prefix=_filename_prefix(fd, import_path, self._options),
            messages=messages,
            imports=imports,
            has_timestamp=TIMESTAMP_PROTO in fd.dependency,
            generate=generate,
        )


def build_schema_files(
    request: plugin_pb2.CodeGeneratorRequest,
    options: PluginOptions,
    diagnostics: Diagnostics,
) -> List[SchemaFile]:
    return _SchemaBuilder(request, options, diagnostics).build()


def _compiler_version(request: plugin_pb2.CodeGeneratorRequest) -> Optional[Tuple[int, int, int]]:
    if not request.HasField("compiler_version"):
        return None
    v = request.compiler_version
    return v.major, v.minor, v.patch


def generate(request: plugin_pb2.CodeGeneratorRequest) -> GenerationResult:
    """Run the generator over a whole request.

    Files generated before an error stay in the response; errors are joined
    into `response.error`.
    """
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        options = parse_parameter(request.parameter)
    except PluginError as e:
        diagnostics = Diagnostics()
        diagnostics.error("", str(e))
        response.error = str(e)
        return GenerationResult(response, diagnostics)

    ctx = GeneratorContext.create(options, compiler_version=_compiler_version(request))

    for schema in build_schema_files(request, options, ctx.diagnostics):
        if not schema.generate:
            continue
        out = generate_file(schema, ctx)
        if out is None:
            continue
        generated = response.file.add()
        generated.name = out.filename
        generated.content = out.content(ctx.compiler_version)

    if ctx.diagnostics.has_errors():
        response.error = "\n".join(str(d) for d in ctx.diagnostics.errors)
    return GenerationResult(response, ctx.diagnostics)
