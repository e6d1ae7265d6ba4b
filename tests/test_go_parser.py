import pytest

from protoc_gen_bima.parser.go_ast import GoIndexExpr, GoSelectorExpr, GoStarExpr, GoStructExpr
from protoc_gen_bima.parser.go_ast_parser import GoParseError
from protoc_gen_bima.parser.go_parser import parse_go_file, parse_go_source
from protoc_gen_bima.parser.go_tokenizer import GoTokenType, tokenize_go
from protoc_gen_bima.parser.go_transform import find_model_fields


TODO_MODEL = """\
package models

import (
	"database/sql"
	"time"

	"gorm.io/gorm"
)

// Todo is a single task.
type Todo struct {
	gorm.Model
	Title       string `gorm:"size:255" json:"title"`
	Description sql.NullString
	Priority    int
	DueAt       *time.Time
	Tags        []string
	Meta        map[string]string
	Owner       *User
	Done, Pinned bool
}

type User struct {
	Name string
}

func (t *Todo) TableName() string {
	return "todos"
}
"""


class TestTokenizer:
    def test_semicolon_inserted_after_identifier(self):
        tokens = tokenize_go("package models\n")
        types = [t.type for t in tokens]
        assert types == [GoTokenType.PACKAGE, GoTokenType.IDENT, GoTokenType.SEMICOLON, GoTokenType.EOF]

    def test_no_semicolon_after_open_brace(self):
        tokens = tokenize_go("type T struct {\n}\n")
        values = [t.value for t in tokens]
        assert values[:5] == ["type", "T", "struct", "{", "}"]

    def test_raw_string_tag_is_single_token(self):
        tokens = tokenize_go('X int `json:"x"`\n')
        assert tokens[2].type == GoTokenType.STRING
        assert tokens[2].value == '`json:"x"`'

    def test_line_and_column_tracking(self):
        tokens = tokenize_go("package p\n\ntype  T int\n")
        type_tok = next(t for t in tokens if t.type == GoTokenType.TYPE)
        assert (type_tok.line, type_tok.col) == (3, 1)
        name_tok = tokens[tokens.index(type_tok) + 1]
        assert (name_tok.line, name_tok.col) == (3, 7)

    def test_unterminated_string_raises(self):
        with pytest.raises(GoParseError):
            parse_go_source('package p\nimport "fmt\n')


class TestGoParser:
    def test_package_and_imports(self):
        ast = parse_go_source(TODO_MODEL)
        assert ast.package == "models"
        assert [i.path for i in ast.imports] == ["database/sql", "time", "gorm.io/gorm"]

    def test_struct_fields(self):
        ast = parse_go_source(TODO_MODEL)
        todo = ast.find_struct("Todo")
        assert isinstance(todo, GoStructExpr)
        embedded = todo.fields[0]
        assert embedded.is_embedded
        assert isinstance(embedded.type_expr, GoSelectorExpr)
        assert todo.fields[1].names == ["Title"]
        assert todo.fields[1].tag == '`gorm:"size:255" json:"title"`'
        assert todo.fields[-1].names == ["Done", "Pinned"]

    def test_methods_are_skipped(self):
        ast = parse_go_source(TODO_MODEL)
        assert [s.name for s in ast.type_specs] == ["Todo", "User"]

    def test_grouped_type_declaration(self):
        src = "package p\n\ntype (\n\tA struct{ X int }\n\tB = A\n\tC int\n)\n"
        ast = parse_go_source(src)
        assert [s.name for s in ast.type_specs] == ["A", "B", "C"]
        assert ast.type_specs[1].is_alias
        assert ast.find_struct("B") is None

    def test_generic_struct(self):
        src = "package p\n\ntype Page[T any] struct {\n\tItems []T\n\tNext  *Cursor[T]\n}\n"
        ast = parse_go_source(src)
        spec = ast.type_specs[0]
        assert spec.type_params == ["T"]
        nxt = spec.type_expr.fields[1].type_expr
        assert isinstance(nxt, GoStarExpr)
        assert isinstance(nxt.elem, GoIndexExpr)

    def test_func_and_chan_fields(self):
        src = (
            "package p\n\ntype Worker struct {\n"
            "\tRun  func(ctx context.Context) error\n"
            "\tJobs <-chan int\n"
            "\tAny  interface{}\n"
            "\tName string\n"
            "}\n"
        )
        fields = find_model_fields(parse_go_source(src), "Worker")
        assert fields == {"Name": "string"}

    def test_const_and_var_blocks_skipped(self):
        src = (
            "package p\n\nconst (\n\tA = iota\n\tB\n)\n\n"
            "var defaults = map[string]int{\"a\": 1}\n\n"
            "type T struct {\n\tX int64\n}\n"
        )
        assert find_model_fields(parse_go_source(src), "T") == {"X": "int64"}

    def test_missing_package_clause(self):
        with pytest.raises(GoParseError, match="Line 1:1"):
            parse_go_source("type T struct{}\n")

    def test_parse_go_file(self, tmp_path):
        path = tmp_path / "todo.go"
        path.write_text(TODO_MODEL, encoding="utf-8")
        ast = parse_go_file(str(path))
        assert ast.find_struct("User") is not None


class TestTransform:
    def test_field_map(self):
        fields = find_model_fields(parse_go_source(TODO_MODEL), "Todo")
        assert fields == {
            "Title": "string",
            "Description": "sql.NullString",
            "Priority": "int",
            "DueAt": "*time.Time",
            "Owner": "*User",
            "Done": "bool",
            "Pinned": "bool",
        }

    def test_unknown_struct(self):
        assert find_model_fields(parse_go_source(TODO_MODEL), "Missing") is None

    def test_aliased_import_uses_package_name(self):
        source = (
            "package models\n"
            "\n"
            "import (\n"
            '\tdbsql "database/sql"\n'
            '\t_ "embed"\n'
            ")\n"
            "\n"
            "type Todo struct {\n"
            "\tDescription dbsql.NullString\n"
            "\tDeletedAt   *dbsql.NullTime\n"
            "}\n"
        )
        fields = find_model_fields(parse_go_source(source), "Todo")
        assert fields == {"Description": "sql.NullString", "DeletedAt": "*sql.NullTime"}
