import pytest

from protoc_gen_bima.generator.output import GeneratedFile
from protoc_gen_bima.models import (
    Cardinality,
    EnumType,
    Field,
    GoIdent,
    Kind,
    Message,
    ModelAnnotation,
    SchemaFile,
)
from protoc_gen_bima.naming import go_camel_case
from protoc_gen_bima.rules import PTYPES_IMPORT, ConversionError, Strategy, plan_conversion

GEN_PATH = "github.com/acme/app/gen/todopb"
WRAPPERS_PATH = "google.golang.org/protobuf/types/known/wrapperspb"
TIMESTAMP_PATH = "google.golang.org/protobuf/types/known/timestamppb"
MODEL = ModelAnnotation("github.com/acme/app/models", "Todo")


def _make_out() -> GeneratedFile:
    schema = SchemaFile(
        proto_path="todo.proto",
        go_package_name="todopb",
        go_import_path=GEN_PATH,
        generated_filename_prefix=f"{GEN_PATH}/todo",
    )
    return GeneratedFile(schema)


def _make_field(name: str, kind: Kind, **kwargs) -> Field:
    return Field(name=name, go_name=go_camel_case(name), kind=kind, **kwargs)


def _make_wrapper(name: str, wrapper: str) -> Field:
    message = Message(wrapper, f"google.protobuf.{wrapper}", GoIdent(wrapper, WRAPPERS_PATH))
    return _make_field(name, Kind.MESSAGE, has_presence=True, message=message)


def _make_timestamp(name: str) -> Field:
    message = Message("Timestamp", "google.protobuf.Timestamp", GoIdent("Timestamp", TIMESTAMP_PATH))
    return _make_field(name, Kind.MESSAGE, has_presence=True, message=message)


class TestScalarFields:
    def test_same_type_is_direct(self):
        plan = plan_conversion(_make_field("title", Kind.STRING), "string", _make_out(), MODEL)
        assert plan.strategy == Strategy.DIRECT
        assert plan.to_model == ["to.Title = from.Title"]
        assert plan.to_message == ["to.Title = from.Title"]

    def test_optional_field_to_value(self):
        field = _make_field("title", Kind.STRING, has_presence=True)
        plan = plan_conversion(field, "string", _make_out(), MODEL)
        assert plan.strategy == Strategy.PRESENCE_UNWRAP
        assert plan.to_model == ["if from.Title != nil {", "\tto.Title = *from.Title", "}"]
        assert plan.to_message == ["to.Title = &from.Title"]

    def test_value_field_to_pointer(self):
        plan = plan_conversion(_make_field("title", Kind.STRING), "*string", _make_out(), MODEL)
        assert plan.strategy == Strategy.PRESENCE_UNWRAP
        assert plan.to_model == ["to.Title = &from.Title"]
        assert plan.to_message == ["if from.Title != nil {", "\tto.Title = *from.Title", "}"]

    def test_numeric_conversion(self):
        plan = plan_conversion(_make_field("priority", Kind.INT32), "int", _make_out(), MODEL)
        assert plan.strategy == Strategy.CONVERT
        assert plan.to_model == ["to.Priority = int(from.Priority)"]
        assert plan.to_message == ["to.Priority = int32(from.Priority)"]

    def test_numeric_conversion_to_pointer(self):
        plan = plan_conversion(_make_field("priority", Kind.INT32), "*int64", _make_out(), MODEL)
        assert plan.to_model == ["priority := int64(from.Priority)", "to.Priority = &priority"]
        assert plan.to_message == ["if from.Priority != nil {", "\tto.Priority = int32(*from.Priority)", "}"]

    def test_local_name_avoids_reserved(self):
        plan = plan_conversion(_make_field("to", Kind.INT32), "*int", _make_out(), MODEL)
        assert plan.to_model == ["to_ := int(from.To)", "to.To = &to_"]

    def test_local_name_avoids_predeclared(self):
        plan = plan_conversion(_make_field("int", Kind.INT32), "*int", _make_out(), MODEL)
        assert plan.to_model == ["int_ := int(from.Int)", "to.Int = &int_"]

    def test_local_name_avoids_imports(self):
        out = _make_out()
        out.qualified(GoIdent("NullString", "database/sql"))
        plan = plan_conversion(_make_field("sql", Kind.INT32), "*int64", out, MODEL)
        assert plan.to_model == ["sql_ := int64(from.Sql)", "to.Sql = &sql_"]

    def test_later_import_renamed_around_local(self):
        out = _make_out()
        plan = plan_conversion(_make_field("sql", Kind.INT32), "*int64", out, MODEL)
        assert plan.to_model == ["sql := int64(from.Sql)", "to.Sql = &sql"]
        assert out.qualified(GoIdent("NullString", "database/sql")) == "sql1.NullString"

    def test_incompatible_types_dropped(self):
        plan = plan_conversion(_make_field("title", Kind.STRING), "int", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.to_model == []
        assert plan.to_message == []
        assert plan.advisory is None

    def test_sql_null_model_gets_advisory(self):
        plan = plan_conversion(_make_field("title", Kind.STRING), "sql.NullString", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.advisory == (
            "Please change field Title on model Todo to string type, it wouldn't benefit anything"
        )


class TestEnumFields:
    def _make_enum_field(self):
        enum = EnumType("todo.Status", GoIdent("Status", GEN_PATH))
        return _make_field("status", Kind.ENUM, enum=enum)

    def test_integer_model(self):
        plan = plan_conversion(self._make_enum_field(), "int32", _make_out(), MODEL)
        assert plan.strategy == Strategy.ENUM
        assert plan.to_model == ["to.Status = int32(from.Status)"]
        assert plan.to_message == ["to.Status = Status(from.Status)"]

    def test_named_model_type(self):
        out = _make_out()
        plan = plan_conversion(self._make_enum_field(), "TodoStatus", out, MODEL)
        assert plan.to_model == ["to.Status = models.TodoStatus(from.Status)"]
        assert ("models", "github.com/acme/app/models") in out.imports()

    def test_model_type_named_like_enum(self):
        out = _make_out()
        plan = plan_conversion(self._make_enum_field(), "Status", out, MODEL)
        assert plan.strategy == Strategy.ENUM
        assert plan.to_model == ["to.Status = models.Status(from.Status)"]
        assert plan.to_message == ["to.Status = Status(from.Status)"]
        assert ("models", "github.com/acme/app/models") in out.imports()

    def test_model_in_generated_package(self):
        model = ModelAnnotation(GEN_PATH, "Todo")
        plan = plan_conversion(self._make_enum_field(), "Status", _make_out(), model)
        assert plan.strategy == Strategy.DIRECT
        assert plan.to_model == ["to.Status = from.Status"]

    def test_string_model_unsupported(self):
        plan = plan_conversion(self._make_enum_field(), "string", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED


class TestWrapperFields:
    def test_pointer_primitive(self):
        plan = plan_conversion(_make_wrapper("description", "StringValue"), "*string", _make_out(), MODEL)
        assert plan.strategy == Strategy.WELL_KNOWN_WRAPPER
        assert plan.to_model == [
            "if from.Description != nil {",
            "\tto.Description = &from.Description.Value",
            "}",
        ]
        assert plan.to_message == [
            "if from.Description != nil {",
            "\tto.Description = &wrapperspb.StringValue{Value: *from.Description}",
            "}",
        ]

    def test_pointer_with_cast(self):
        plan = plan_conversion(_make_wrapper("count", "Int32Value"), "*int", _make_out(), MODEL)
        assert plan.to_model == [
            "if from.Count != nil {",
            "\tcount := int(from.Count.Value)",
            "\tto.Count = &count",
            "}",
        ]
        assert "\tto.Count = &wrapperspb.Int32Value{Value: int32(*from.Count)}" in plan.to_message

    def test_value_model_gets_advisory(self):
        plan = plan_conversion(_make_wrapper("description", "StringValue"), "string", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.advisory == (
            "Please change protobuf type message's field regarding type of Description on model Todo"
        )

    def test_sql_null_model(self):
        out = _make_out()
        plan = plan_conversion(_make_wrapper("description", "StringValue"), "sql.NullString", out, MODEL)
        assert plan.strategy == Strategy.SQL_NULL_WRAPPER
        assert plan.to_model == [
            "if from.Description != nil {",
            "\tto.Description = sql.NullString{String: from.Description.Value, Valid: true}",
            "}",
        ]
        assert plan.to_message == [
            "if from.Description.Valid {",
            "\tto.Description = &wrapperspb.StringValue{Value: from.Description.String}",
            "}",
        ]
        assert ("sql", "database/sql") in out.imports()

    def test_sql_null_model_with_cast(self):
        plan = plan_conversion(_make_wrapper("count", "Int32Value"), "sql.NullInt64", _make_out(), MODEL)
        assert "\tto.Count = sql.NullInt64{Int64: int64(from.Count.Value), Valid: true}" in plan.to_model
        assert "\tto.Count = &wrapperspb.Int32Value{Value: int32(from.Count.Int64)}" in plan.to_message

    def test_sql_null_pointer_rejected(self):
        with pytest.raises(ConversionError, match=r"type \*sql.NullString is not supported"):
            plan_conversion(_make_wrapper("description", "StringValue"), "*sql.NullString", _make_out(), MODEL)

    def test_sql_null_mismatch_rejected(self):
        with pytest.raises(ConversionError, match="type sql.NullBool is not supported"):
            plan_conversion(_make_wrapper("description", "StringValue"), "sql.NullBool", _make_out(), MODEL)


class TestTimestampFields:
    def test_time_value(self):
        out = _make_out()
        plan = plan_conversion(_make_timestamp("due_at"), "time.Time", out, MODEL)
        assert plan.strategy == Strategy.TIMESTAMP
        assert plan.to_model == [
            "if from.DueAt != nil {",
            "\tif from.DueAt.IsValid() {",
            "\t\tto.DueAt = from.DueAt.AsTime()",
            "\t}",
            "}",
        ]
        assert plan.to_message == ["to.DueAt, _ = ptypes.TimestampProto(from.DueAt)"]
        assert ("ptypes", PTYPES_IMPORT) in out.imports()

    def test_time_pointer(self):
        plan = plan_conversion(_make_timestamp("due_at"), "*time.Time", _make_out(), MODEL)
        assert "\t\tt := from.DueAt.AsTime()" in plan.to_model
        assert "\t\tto.DueAt = &t" in plan.to_model
        assert plan.to_message == [
            "if from.DueAt != nil {",
            "\tto.DueAt, _ = ptypes.TimestampProto(*from.DueAt)",
            "}",
        ]

    def test_sql_null_time(self):
        plan = plan_conversion(_make_timestamp("due_at"), "sql.NullTime", _make_out(), MODEL)
        assert "\t\tto.DueAt = sql.NullTime{Time: from.DueAt.AsTime(), Valid: true}" in plan.to_model
        assert plan.to_message[0] == "if from.DueAt.Valid {"

    def test_wrong_model_type(self):
        with pytest.raises(ConversionError, match="type string is not to be used for Timestamp"):
            plan_conversion(_make_timestamp("due_at"), "string", _make_out(), MODEL)

    def test_sql_null_time_pointer(self):
        with pytest.raises(ConversionError, match=r"type \*sql.NullTime is not supported"):
            plan_conversion(_make_timestamp("due_at"), "*sql.NullTime", _make_out(), MODEL)


class TestSkippedFields:
    def test_repeated_field(self):
        field = _make_field("tags", Kind.STRING, cardinality=Cardinality.LIST)
        plan = plan_conversion(field, "[]string", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.to_model == []
        assert plan.to_message == []
        assert plan.advisory is None

    def test_map_field(self):
        field = _make_field("labels", Kind.MESSAGE, cardinality=Cardinality.MAP)
        plan = plan_conversion(field, "map[string]string", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.to_model == []
        assert plan.to_message == []
        assert plan.advisory is None

    def test_oneof_member(self):
        field = _make_field("title", Kind.STRING, has_presence=True, in_oneof=True)
        plan = plan_conversion(field, "string", _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.to_model == []

    def test_other_message_type(self):
        owner = Message("User", "todo.User", GoIdent("User", GEN_PATH))
        field = _make_field("owner", Kind.MESSAGE, has_presence=True, message=owner)
        assert plan_conversion(field, "*User", _make_out(), MODEL).strategy == Strategy.UNSUPPORTED


class TestMissingModelField:
    def test_id_copied(self):
        plan = plan_conversion(_make_field("id", Kind.UINT64), None, _make_out(), MODEL)
        assert plan.strategy == Strategy.DIRECT
        assert plan.to_model == ["to.Id = from.Id"]

    def test_other_field_skipped(self):
        plan = plan_conversion(_make_field("title", Kind.STRING), None, _make_out(), MODEL)
        assert plan.strategy == Strategy.UNSUPPORTED
        assert plan.to_model == []
